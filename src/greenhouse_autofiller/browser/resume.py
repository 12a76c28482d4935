"""Resume file synthesis and attachment to file-type inputs."""

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from playwright.async_api import ElementHandle, Page

from greenhouse_autofiller.config import settings
from greenhouse_autofiller.utils.logging import get_logger

logger = get_logger(__name__)


RESUME_KEYWORDS = ("resume", "cv", "curriculum vitae")
COVER_LETTER_KEYWORDS = ("cover letter", "coverletter", "letter")

DESCRIBE_FILE_INPUT_JS = """
(input) => {
    const container = input.closest('div, label, fieldset') || input;
    return {
        text: container.textContent || '',
        id: input.id || '',
        name: input.getAttribute('name') || '',
        ariaLabel: input.getAttribute('aria-label') || '',
    };
}
"""

# input.files only accepts a FileList, which only DataTransfer can build.
# Chunks arrive base64-encoded.
ATTACH_FILE_JS = """
(input, { chunks, mimeType, fileName }) => {
    const parts = chunks.map((chunk) => Uint8Array.from(atob(chunk), (c) => c.charCodeAt(0)));
    const blob = new Blob(parts, { type: mimeType });
    const file = new File([blob], fileName, { type: mimeType });
    const transfer = new DataTransfer();
    transfer.items.add(file);
    input.files = transfer.files;
    input.dispatchEvent(new Event('change', { bubbles: true }));
    return input.files.length;
}
"""

HIGHLIGHT_JS = """
(input, border) => {
    input.style.border = border;
    input.scrollIntoView({ behavior: 'smooth', block: 'center' });
}
"""


class ResumeDecodeError(ValueError):
    """Raised when a resume payload is not a usable base64 data URI."""


@dataclass(frozen=True)
class ResumePayload:
    """Decoded resume file."""
    mime_type: str
    data: bytes

    def chunks(self, size: int = 512) -> List[bytes]:
        return chunk_bytes(self.data, size)


@dataclass(frozen=True)
class FileInputDescriptor:
    """Text signals describing what a file input is for."""
    text: str = ""
    id: str = ""
    name: str = ""
    aria_label: str = ""

    @classmethod
    def from_page(cls, raw: Dict[str, Any]) -> "FileInputDescriptor":
        return cls(
            text=str(raw.get("text") or ""),
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            aria_label=str(raw.get("ariaLabel") or ""),
        )

    def signals(self) -> List[str]:
        return [s.lower() for s in (self.text, self.id, self.name, self.aria_label)]


def decode_data_uri(uri: str) -> ResumePayload:
    """
    Decode a data:<mime>;base64,<payload> URI.

    Args:
        uri: Data URI produced by the profile editor

    Returns:
        Decoded payload with its mime type

    Raises:
        ResumeDecodeError: If the URI is malformed or the body is not valid base64
    """
    header, separator, body = uri.partition(",")
    if not separator:
        raise ResumeDecodeError("Data URI has no ',' separator")
    if not header.startswith("data:"):
        raise ResumeDecodeError("Data URI does not start with 'data:'")

    mime_type, *params = header[len("data:"):].split(";")
    if "base64" not in params:
        raise ResumeDecodeError("Data URI is not base64 encoded")

    try:
        data = base64.b64decode("".join(body.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ResumeDecodeError(f"Invalid base64 payload: {e}") from e

    return ResumePayload(mime_type=mime_type or "application/octet-stream", data=data)


def chunk_bytes(data: bytes, size: int = 512) -> List[bytes]:
    """Split bytes into fixed-size blocks; the last block may be shorter."""
    if size <= 0:
        raise ValueError("Chunk size must be positive")
    return [data[offset:offset + size] for offset in range(0, len(data), size)]


def is_resume_input(descriptor: FileInputDescriptor) -> bool:
    """A file input is for resumes if it mentions one and never a cover letter."""
    signals = descriptor.signals()
    has_resume_keyword = any(k in s for k in RESUME_KEYWORDS for s in signals)
    has_cover_letter_keyword = any(k in s for k in COVER_LETTER_KEYWORDS for s in signals)
    return has_resume_keyword and not has_cover_letter_keyword


class ResumeInjector:
    """Attaches the candidate's resume to every resume-eligible file input."""

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        file_name: Optional[str] = None,
        highlight_border: Optional[str] = None
    ):
        self.chunk_size = chunk_size or settings.resume_chunk_size
        self.file_name = file_name or settings.resume_filename
        self.highlight_border = highlight_border or settings.highlight_border
        self.logger = logger.bind(component="resume_injector")

    async def describe(self, file_input: ElementHandle) -> FileInputDescriptor:
        return FileInputDescriptor.from_page(await file_input.evaluate(DESCRIBE_FILE_INPUT_JS))

    async def find_resume_inputs(self, page: Page) -> List[ElementHandle]:
        """Return the file inputs classified as resume uploaders."""
        eligible = []
        for file_input in await page.query_selector_all('input[type="file"]'):
            try:
                descriptor = await self.describe(file_input)
            except Exception as e:
                self.logger.debug("Could not inspect file input", error=str(e))
                continue
            if is_resume_input(descriptor):
                eligible.append(file_input)
        return eligible

    async def attach(self, page: Page, resume_file: Optional[str]) -> int:
        """
        Attach the resume to the page.

        Args:
            page: Live page
            resume_file: Resume data URI, or None

        Returns:
            Number of file inputs the resume was attached to
        """
        if not resume_file:
            return 0

        targets = await self.find_resume_inputs(page)
        if not targets:
            self.logger.debug("No resume file input on page")
            return 0

        try:
            payload = decode_data_uri(resume_file)
        except ResumeDecodeError as e:
            self.logger.error("Error uploading resume", error=str(e))
            return 0

        chunks = [base64.b64encode(chunk).decode("ascii") for chunk in payload.chunks(self.chunk_size)]
        attached = 0

        for file_input in targets:
            try:
                await file_input.evaluate(
                    ATTACH_FILE_JS,
                    {"chunks": chunks, "mimeType": payload.mime_type, "fileName": self.file_name}
                )
                await file_input.evaluate(HIGHLIGHT_JS, self.highlight_border)
                attached += 1
                self.logger.info(
                    "Resume file uploaded",
                    mime_type=payload.mime_type,
                    size=len(payload.data),
                    file_name=self.file_name
                )
            except Exception as e:
                self.logger.error(
                    "Error uploading resume",
                    error=str(e),
                    error_type=type(e).__name__
                )

        return attached


def create_resume_injector(
    chunk_size: Optional[int] = None,
    file_name: Optional[str] = None,
    highlight_border: Optional[str] = None
) -> ResumeInjector:
    """Factory function to create a resume injector."""
    return ResumeInjector(chunk_size=chunk_size, file_name=file_name, highlight_border=highlight_border)
