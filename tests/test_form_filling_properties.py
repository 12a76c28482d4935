"""Property-based tests for the form filling orchestrator."""

import asyncio

import pytest
from hypothesis import given, settings, strategies as st
from unittest.mock import AsyncMock

from greenhouse_autofiller.browser.forms import FillReport, FormFiller, create_form_filler
from greenhouse_autofiller.core.fields import SemanticField, resolve_value
from greenhouse_autofiller.core.models import CandidateProfile, Education, Experience

from fakes import PDF_BYTES, FakeElement, FakePage, make_filler


def greenhouse_form():
    """A Greenhouse-style form: curated ids for contact details, named inputs for the rest."""
    controls = {
        SemanticField.FIRST_NAME: FakeElement("input", id="first_name", name="job_application[first_name]"),
        SemanticField.LAST_NAME: FakeElement("input", id="last_name", name="job_application[last_name]"),
        SemanticField.EMAIL: FakeElement("input", id="email", name="job_application[email]"),
        SemanticField.PHONE: FakeElement("input", id="phone", name="job_application[phone]"),
        SemanticField.SCHOOL: FakeElement("input", name="education[school_name]"),
        SemanticField.DEGREE: FakeElement("input", name="education[degree]"),
        SemanticField.FIELD_OF_STUDY: FakeElement("input", name="education[field_of_study]"),
        SemanticField.EDUCATION_END_DATE: FakeElement("input", name="education_end_date"),
        SemanticField.COMPANY: FakeElement("input", name="employment[company_name]"),
        SemanticField.JOB_TITLE: FakeElement("input", name="employment[job_title]"),
        SemanticField.START_DATE: FakeElement("input", name="employment[start_date]"),
        SemanticField.END_DATE: FakeElement("input", name="employment[end_date]"),
        SemanticField.DESCRIPTION: FakeElement("textarea", name="employment[description]"),
    }
    return FakePage(*controls.values()), controls


text = st.text(max_size=30)


@st.composite
def profile_strategy(draw):
    """Generate candidate profiles, sometimes with empty groups."""
    return CandidateProfile(
        first_name=draw(text),
        last_name=draw(text),
        email=draw(st.emails()),
        phone=draw(text),
        education=draw(st.lists(
            st.builds(Education, school=text, degree=text, field_of_study=text, end_date=text),
            max_size=2
        )),
        experience=draw(st.lists(
            st.builds(Experience, company=text, title=text, start_date=text, end_date=text, description=text),
            max_size=2
        )),
    )


class TestFormFillingProperties:
    """Property-based tests for fill completeness and independence."""

    @given(profile_strategy())
    @settings(max_examples=30, deadline=5000)
    def test_every_control_receives_its_resolved_value(self, profile):
        """Each control on a fully-marked form ends up holding Resolver(F, P)."""
        async def run_test():
            page, controls = greenhouse_form()
            report = await make_filler(page).autofill(profile)

            for semantic_field, element in controls.items():
                assert element.value == resolve_value(semantic_field, profile), semantic_field
            assert report.missed == []

        asyncio.run(run_test())

    @given(profile_strategy(), st.sets(st.sampled_from(list(SemanticField)), min_size=1))
    @settings(max_examples=30, deadline=5000)
    def test_absent_fields_do_not_affect_present_ones(self, profile, absent):
        """Removing any set of controls leaves the remaining ones filled correctly."""
        async def run_test():
            _, controls = greenhouse_form()
            present = {f: el for f, el in controls.items() if f not in absent}
            page = FakePage(*present.values())

            report = await make_filler(page).autofill(profile)

            for semantic_field, element in present.items():
                assert element.value == resolve_value(semantic_field, profile)
            assert set(report.missed) == {f.value for f in absent}

        asyncio.run(run_test())

    @given(profile_strategy())
    @settings(max_examples=20, deadline=5000)
    def test_running_twice_matches_running_once(self, profile):
        """A second invocation on an unchanged page leaves the same values."""
        async def run_test():
            page, controls = greenhouse_form()
            filler = make_filler(page)

            await filler.autofill(profile)
            once = {f: el.value for f, el in controls.items()}

            await filler.autofill(profile)
            twice = {f: el.value for f, el in controls.items()}

            assert once == twice

        asyncio.run(run_test())


class TestFormFiller:
    """Scenario tests for FormFiller."""

    def test_factory_binds_page(self):
        page = FakePage()
        filler = create_form_filler(page, rescan_delay_ms=250)

        assert isinstance(filler, FormFiller)
        assert filler.page is page
        assert filler.rescan_delay == pytest.approx(0.25)

    @pytest.mark.asyncio
    async def test_curated_selector_beats_substring_match(self, candidate):
        curated = FakeElement("input", id="first_name")
        broad = FakeElement("input", name="preferred_first_name")
        page = FakePage(broad, curated)

        report = await make_filler(page).autofill(candidate)

        assert curated.value == "Jane"
        assert broad.value == ""
        assert broad.focused == 0
        assert report.filled[SemanticField.FIRST_NAME.value] == 1

    @pytest.mark.asyncio
    async def test_element_filled_once_per_pass(self, candidate):
        page, controls = greenhouse_form()

        await make_filler(page).autofill(candidate)

        # Curated pass and full pass both locate the same control
        assert controls[SemanticField.EMAIL].focused == 1
        assert controls[SemanticField.EMAIL].native_writes == ["jane.doe@example.com"]

    @pytest.mark.asyncio
    async def test_ambiguous_name_goes_to_first_field_in_table(self, candidate):
        page, controls = greenhouse_form()

        await make_filler(page).autofill(candidate)

        # "education_end_date" also contains "end_date"
        assert controls[SemanticField.EDUCATION_END_DATE].value == "2020-05"
        assert controls[SemanticField.END_DATE].value == "2023-01"

    @pytest.mark.asyncio
    async def test_label_and_data_attribute_strategies(self, candidate):
        school = FakeElement("input", id="q_12")
        degree = FakeElement("input", data__field="degree")
        page = FakePage(
            FakeElement("label", text="School", **{"for": "q_12"}),
            school,
            FakeElement("div").append(degree),
        )

        report = await make_filler(page).autofill(candidate)

        assert school.value == "University of Technology"
        assert degree.value == "Bachelor of Science"
        assert SemanticField.SCHOOL.value not in report.missed

    @pytest.mark.asyncio
    async def test_late_framework_control_filled_by_rescan(self, candidate):
        seen = []
        late = FakeElement("input", name="candidate_first_name", framework=True, on_change=seen.append)
        late_plain = FakeElement("input", name="candidate_last_name")
        page = FakePage(FakeElement("input", id="email"))
        filler = make_filler(page)
        filler._wait_for_late_controls = AsyncMock(side_effect=lambda: page.add(late, late_plain))

        report = await filler.autofill(candidate)

        assert late.value == "Jane"
        assert seen == ["Jane"]
        assert late_plain.value == ""
        assert len(report.pass_ids) == 2
        assert report.filled[SemanticField.FIRST_NAME.value] == 1

    @pytest.mark.asyncio
    async def test_rescan_refills_framework_controls(self, candidate):
        seen = []
        element = FakeElement("input", id="first_name", name="first_name", framework=True, on_change=seen.append)
        page = FakePage(element)

        report = await make_filler(page).autofill(candidate)

        assert seen == ["Jane", "Jane"]
        assert report.filled[SemanticField.FIRST_NAME.value] == 2

    @pytest.mark.asyncio
    async def test_failing_element_does_not_stop_the_pass(self, candidate):
        page, controls = greenhouse_form()
        controls[SemanticField.LAST_NAME].detached = True

        report = await make_filler(page).autofill(candidate)

        assert report.errors >= 1
        assert controls[SemanticField.FIRST_NAME].value == "Jane"
        assert controls[SemanticField.EMAIL].value == "jane.doe@example.com"
        assert controls[SemanticField.DESCRIPTION].value.startswith("Developed")

    @pytest.mark.asyncio
    async def test_resume_attached_alongside_fields(self, candidate):
        page, controls = greenhouse_form()
        resume = FakeElement("input", type="file", id="resume")
        cover = FakeElement("input", type="file", id="cover_letter")
        page.add(FakeElement("div", text="Resume/CV").append(resume))
        page.add(FakeElement("div", text="Cover Letter").append(cover))

        report = await make_filler(page).autofill(candidate)

        assert report.resume_attached == 1
        assert resume.files[0]["data"] == PDF_BYTES
        assert cover.files == []
        assert controls[SemanticField.PHONE].value == "(555) 123-4567"

    @pytest.mark.asyncio
    async def test_broken_resume_does_not_stop_fill(self, candidate_payload):
        candidate_payload["resumeFile"] = "data:application/pdf;base64,%%%"
        profile = CandidateProfile.model_validate(candidate_payload)
        page, controls = greenhouse_form()
        resume = FakeElement("input", type="file", name="resume")
        page.add(resume)

        report = await make_filler(page).autofill(profile)

        assert report.resume_attached == 0
        assert resume.files == []
        assert controls[SemanticField.FIRST_NAME].value == "Jane"

    @pytest.mark.asyncio
    async def test_empty_page_completes(self, candidate):
        report = await make_filler(FakePage()).autofill(candidate)

        assert isinstance(report, FillReport)
        assert report.filled == {}
        assert len(report.missed) == len(SemanticField)
        assert report.errors == 0


class TestMessageHandling:
    """Inbound AUTOFILL command handling."""

    @pytest.mark.asyncio
    async def test_acknowledges_before_filling(self, candidate_payload):
        page, controls = greenhouse_form()
        filler = make_filler(page)

        response = filler.handle_message({"type": "AUTOFILL", "candidate": candidate_payload})

        assert response == {"success": True}
        assert controls[SemanticField.FIRST_NAME].value == ""

        reports = await filler.wait_idle()

        assert len(reports) == 1
        assert controls[SemanticField.FIRST_NAME].value == "Jane"

    @pytest.mark.asyncio
    async def test_ignores_other_messages(self):
        filler = make_filler(FakePage())

        assert filler.handle_message({"type": "PING"}) is None
        assert filler.handle_message("AUTOFILL") is None

    @pytest.mark.asyncio
    async def test_rejects_malformed_candidate(self):
        filler = make_filler(FakePage())

        assert filler.handle_message({"type": "AUTOFILL", "candidate": "Jane Doe"}) == {"success": False}
        assert await filler.wait_idle() == []
