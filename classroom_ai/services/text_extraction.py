"""
Submission text extraction.

Submissions are uploaded to the storage bucket as PDF, DOCX or plain text.
The analysis endpoints need the text, so the downloaded bytes are decoded
here. Extraction that yields nothing raises EmptyContentError before any AI
call is made.
"""
import io
import logging
import os
from urllib.parse import unquote, urlparse

from classroom_ai.errors import EmptyContentError, NotFoundError

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = ('.txt', '.md', '.csv', '.py', '.java', '.js', '.html', '.json')


def storage_path_for(submission, bucket):
    """
    Object path of a submission's file inside ``bucket``.

    Public URLs look like .../storage/v1/object/public/<bucket>/<path>; the
    path is everything after the bucket segment. Bare file names fall back
    to the <student_id>/<assignment_id>/<file> upload layout.
    """
    file_url = submission.file_url or ""
    marker = f"/{bucket}/"
    if marker in file_url:
        # Drop scheme, host and any signed-URL query string
        path = urlparse(file_url).path if "://" in file_url else file_url
        return unquote(path.split(marker, 1)[1])

    file_name = os.path.basename(urlparse(file_url).path) if file_url else ""
    file_name = unquote(file_name) or (submission.file_name or "")
    if not file_name or not submission.student_id or not submission.assignment_id:
        raise NotFoundError("Invalid file URL format")
    return f"{submission.student_id}/{submission.assignment_id}/{file_name}"


def _extract_pdf_text(data):
    """Extract text from PDF bytes using PyMuPDF."""
    import fitz
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return "\n\n".join(page.get_text() for page in doc)
    finally:
        doc.close()


def _extract_docx_text(data):
    """Extract paragraph and table text from DOCX bytes using python-docx."""
    from docx import Document
    from docx.table import Table
    from docx.text.paragraph import Paragraph

    doc = Document(io.BytesIO(data))
    full_text = []
    for element in doc.element.body:
        if element.tag.endswith('p'):
            para = Paragraph(element, doc)
            if para.text.strip():
                full_text.append(para.text)
        elif element.tag.endswith('tbl'):
            table = Table(element, doc)
            for row in table.rows:
                row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if row_text:
                    full_text.append(' | '.join(row_text))
    return '\n'.join(full_text)


def extract_text(data, filename):
    """
    Decode a submitted file into plain text.

    Args:
        data: Raw file bytes from storage
        filename: Name used to pick the extractor by extension

    Raises:
        EmptyContentError: the file is unreadable or holds no text
    """
    if not data:
        raise EmptyContentError(f"Submitted file {filename} is empty")

    ext = os.path.splitext(filename or "")[1].lower()
    try:
        if ext == '.pdf':
            text = _extract_pdf_text(data)
        elif ext == '.docx':
            text = _extract_docx_text(data)
        else:
            if ext and ext not in TEXT_EXTENSIONS:
                logger.info("Treating %s as plain text", filename)
            text = data.decode('utf-8', errors='replace') if isinstance(data, bytes) else str(data)
    except Exception as e:
        logger.error("Failed to extract text from %s: %s", filename, e)
        raise EmptyContentError(f"Could not extract text from {filename}: {e}") from e

    text = text.replace('\x00', '').strip()
    if not text:
        raise EmptyContentError(f"No text could be extracted from {filename}")
    return text
