"""Shared fixtures for the autofill engine tests."""

import pytest

from greenhouse_autofiller.core.models import CandidateProfile

from fakes import PDF_BYTES, to_data_uri


@pytest.fixture
def candidate_payload():
    """Wire-shaped candidate, as sent by the profile editor."""
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane.doe@example.com",
        "phone": "(555) 123-4567",
        "education": [
            {
                "school": "University of Technology",
                "degree": "Bachelor of Science",
                "field": "Computer Science",
                "endDate": "2020-05",
            }
        ],
        "experience": [
            {
                "company": "Tech Solutions Inc.",
                "title": "Software Developer",
                "startDate": "2020-06",
                "endDate": "2023-01",
                "description": "Developed web applications using JavaScript and React.",
            }
        ],
        "resumeFile": to_data_uri(PDF_BYTES),
    }


@pytest.fixture
def candidate(candidate_payload):
    return CandidateProfile.model_validate(candidate_payload)
