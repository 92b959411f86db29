import io
import re
import logging

import docx
import fitz
import pdfplumber

logger = logging.getLogger(__name__)


class CVExtractor:
    def __init__(self):
        self.supported_formats = {'.pdf', '.docx', '.txt'}

    def extract_text(self, file_bytes: bytes, filename: str) -> str:
        """Extract text from PDF, DOCX or TXT uploads."""
        file_ext = self._get_file_extension(filename)

        if file_ext not in self.supported_formats:
            raise ValueError("Unsupported file format. Please upload PDF, DOCX, or TXT.")

        try:
            if file_ext == '.pdf':
                return self._extract_from_pdf(file_bytes)
            if file_ext == '.docx':
                return self._extract_from_docx(file_bytes)
            return self._clean_text(file_bytes.decode('utf-8', errors='replace'))
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error extracting text from {filename}: {str(e)}")
            return ""

    def _get_file_extension(self, filename: str) -> str:
        """Get the lowercase file extension including the dot."""
        dot = filename.rfind('.')
        return filename[dot:].lower() if dot != -1 else ''

    def _extract_from_pdf(self, file_bytes: bytes) -> str:
        """Extract text from PDF, falling back to pdfplumber when PyMuPDF finds nothing."""
        text = ""

        try:
            with fitz.open(stream=file_bytes, filetype="pdf") as doc:
                text = "\n".join(page.get_text() for page in doc)
        except Exception as e:
            logger.warning(f"PyMuPDF extraction failed: {str(e)}")

        if not text.strip():
            try:
                with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
                    text = "\n".join(page.extract_text() or "" for page in pdf.pages)
            except Exception as e:
                logger.warning(f"pdfplumber extraction failed: {str(e)}")

        return self._clean_text(text)

    def _extract_from_docx(self, file_bytes: bytes) -> str:
        document = docx.Document(io.BytesIO(file_bytes))
        text = "\n".join(paragraph.text for paragraph in document.paragraphs)
        return self._clean_text(text)

    def _clean_text(self, text: str) -> str:
        """Collapse runs of spaces and blank lines but keep line structure."""
        text = text.replace('\x00', '')
        text = re.sub(r'[ \t\f\v]+', ' ', text)
        text = re.sub(r'\n\s*\n+', '\n\n', text)
        return text.strip()
