"""
Inspection document export.

Export runs in two passes:

1. ``layout_inspection`` walks the record top to bottom with a vertical cursor
   (millimetres from the top edge) and places every text line and image on a
   page. Whenever the cursor passes ``PAGE_HEIGHT - MARGIN`` the next element
   starts a new page at ``MARGIN``, so nothing is ever drawn below the bottom
   margin.
2. ``render_pdf`` draws the finished layout with ReportLab.

``export_inspection`` combines both and computes the download filename. The
record is only read, never modified.
"""

import base64
import binascii
import io
import logging
from dataclasses import dataclass, field
from datetime import timezone
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

from PIL import Image, UnidentifiedImageError
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from core.environment import get_export_timezone
from schemas.checklist import ChecklistStatus
from schemas.inspection import InspectionRecord
from services.exceptions import ExportError

logger = logging.getLogger(__name__)

# Page geometry, in millimetres (A4 portrait)
PAGE_WIDTH = 210
PAGE_HEIGHT = 297
MARGIN = 14
WRAP_WIDTH = 180
ITEM_INDENT = 4

LINE_HEIGHT = 5
METADATA_LINE_HEIGHT = 6
TITLE_ADVANCE = 8
SECTION_ADVANCE = 8
CATEGORY_GAP = 2

SIGNATURE_WIDTH = 60
SIGNATURE_HEIGHT = 30

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

SIGNATURE_PLACEHOLDER = "[Signature could not be rendered]"
UNKNOWN = "UNKNOWN"


@dataclass
class TextLine:
    x: float
    y: float  # baseline, mm from the top edge
    text: str
    font: str = FONT
    size: float = 10


@dataclass
class PlacedImage:
    x: float
    y: float  # top edge, mm from the top edge
    width: float
    height: float
    image: Image.Image


Element = Union[TextLine, PlacedImage]


@dataclass
class DocumentLayout:
    pages: List[List[Element]] = field(default_factory=lambda: [[]])

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def lines(self) -> List[TextLine]:
        return [e for page in self.pages for e in page if isinstance(e, TextLine)]


@dataclass
class ExportedDocument:
    filename: str
    content: bytes
    page_count: int
    media_type: str = "application/pdf"


class _Cursor:
    """Top-down cursor that breaks pages lazily, so no trailing blank page is produced."""

    def __init__(self, layout: DocumentLayout):
        self.layout = layout
        self.y = float(MARGIN)
        self.bottom = float(PAGE_HEIGHT - MARGIN)

    def new_page(self):
        self.layout.pages.append([])
        self.y = float(MARGIN)

    def ensure_room(self, height: float = 0):
        if self.y + height > self.bottom and self.y > MARGIN:
            self.new_page()

    def advance(self, dy: float):
        self.y += dy

    def text(self, text: str, x: float = MARGIN, size: float = 10, font: str = FONT,
             advance: float = LINE_HEIGHT):
        self.ensure_room()
        self.layout.pages[-1].append(TextLine(x=x, y=self.y, text=text, font=font, size=size))
        self.advance(advance)

    def wrapped(self, text: str, x: float = MARGIN, width: float = WRAP_WIDTH, size: float = 10,
                font: str = FONT, advance: float = LINE_HEIGHT):
        for line in wrap_text(text, width, font, size):
            self.text(line, x=x, size=size, font=font, advance=advance)

    def image(self, image: Image.Image, width: float, height: float, x: float = MARGIN):
        self.ensure_room(height)
        self.layout.pages[-1].append(
            PlacedImage(x=x, y=self.y, width=width, height=height, image=image)
        )
        self.advance(height)


def _split_chars(line: str, max_width: float, font: str, size: float) -> List[str]:
    chunks: List[str] = []
    current = ""
    for ch in line:
        if current and stringWidth(current + ch, font, size) > max_width:
            chunks.append(current)
            current = ch
        else:
            current += ch
    chunks.append(current)
    return chunks


def wrap_text(text: str, width_mm: float, font: str = FONT, size: float = 10) -> List[str]:
    """
    Split text into lines no wider than width_mm, honouring explicit newlines.

    Words are kept whole where possible; a single token wider than the line
    (URLs, VINs, part numbers) is broken between characters.
    """
    max_width = width_mm * mm
    lines: List[str] = []
    for paragraph in (text or "").splitlines() or [""]:
        for line in simpleSplit(paragraph, font, size, max_width) or [""]:
            if stringWidth(line, font, size) > max_width:
                lines.extend(_split_chars(line, max_width, font, size))
            else:
                lines.append(line)
    return lines


def decode_signature(data_url: str) -> Image.Image:
    """
    Decode a ``data:image/...;base64,`` payload into an RGB image.

    Raises:
        ValueError: If the payload is not a decodable image
    """
    _, _, encoded = data_url.partition(",")
    if not encoded:
        encoded = data_url
    try:
        raw = base64.b64decode(encoded, validate=True)
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (binascii.Error, UnidentifiedImageError, OSError, SyntaxError, Image.DecompressionBombError) as e:
        raise ValueError(f"Invalid signature image: {e}") from e

    # Signature pads draw on a transparent canvas
    if image.mode in ("RGBA", "LA", "P"):
        image = image.convert("RGBA")
        background = Image.new("RGB", image.size, "white")
        background.paste(image, mask=image.split()[-1])
        return background
    return image.convert("RGB")


def format_status(status: ChecklistStatus) -> str:
    return "n/a" if status == ChecklistStatus.UNSET else status.value


def format_date(record: InspectionRecord, tz_name: Optional[str] = None) -> str:
    tz = ZoneInfo(tz_name or get_export_timezone())
    return record.created_at.astimezone(tz).strftime("%d %b %Y %H:%M %Z")


def layout_inspection(record: InspectionRecord, tz_name: Optional[str] = None) -> DocumentLayout:
    layout = DocumentLayout()
    cursor = _Cursor(layout)

    # Title + metadata block
    cursor.text("Vehicle Inspection Report", size=16, font=FONT_BOLD, advance=TITLE_ADVANCE)
    vehicle = record.vehicle
    metadata = [
        f"Date: {format_date(record, tz_name)}",
        f"Type: {record.inspection_type.value}",
        f"Vehicle: {vehicle.make} {vehicle.model}",
        f"Registration: {vehicle.registration}",
        f"Mileage: {vehicle.mileage}",
    ]
    if record.driver_name:
        metadata.append(f"Driver: {record.driver_name}")
    if record.inspector_name:
        metadata.append(f"Inspector: {record.inspector_name}")
    for line in metadata:
        cursor.wrapped(line, size=11, advance=METADATA_LINE_HEIGHT)
    cursor.advance(LINE_HEIGHT - 1)

    # Checklist, in the tree's own order
    if record.checklist:
        cursor.text("Checklist", size=13, font=FONT_BOLD, advance=SECTION_ADVANCE)
        for category_id, items in record.checklist.items():
            cursor.text(category_id.upper(), font=FONT_BOLD)
            for item_id, state in items.items():
                line = f"- {item_id}: {format_status(state.status)}"
                if state.comment:
                    line += f' ("{state.comment}")'
                cursor.wrapped(line, x=MARGIN + ITEM_INDENT, width=WRAP_WIDTH - ITEM_INDENT)
            cursor.advance(CATEGORY_GAP)

    if record.general_comments:
        cursor.advance(4)
        cursor.text("General Comments", size=13, font=FONT_BOLD, advance=METADATA_LINE_HEIGHT)
        cursor.wrapped(record.general_comments)

    if record.signature_data_url:
        cursor.advance(4)
        # Header and image must land on the same page
        cursor.ensure_room(METADATA_LINE_HEIGHT + SIGNATURE_HEIGHT)
        cursor.text("Signature", size=13, font=FONT_BOLD, advance=METADATA_LINE_HEIGHT)
        try:
            signature = decode_signature(record.signature_data_url)
        except ValueError as e:
            logger.warning(
                "Signature could not be embedded, using placeholder",
                extra={"inspection_id": record.id, "error": str(e)},
            )
            cursor.text(SIGNATURE_PLACEHOLDER)
        else:
            cursor.image(signature, SIGNATURE_WIDTH, SIGNATURE_HEIGHT)

    return layout


def render_pdf(layout: DocumentLayout) -> bytes:
    """Draw a finished layout with ReportLab; returns the raw PDF bytes."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(PAGE_WIDTH * mm, PAGE_HEIGHT * mm))

    for page in layout.pages:
        for element in page:
            if isinstance(element, TextLine):
                c.setFont(element.font, element.size)
                c.drawString(element.x * mm, (PAGE_HEIGHT - element.y) * mm, element.text)
            else:
                c.drawImage(
                    ImageReader(element.image),
                    element.x * mm,
                    (PAGE_HEIGHT - element.y - element.height) * mm,
                    width=element.width * mm,
                    height=element.height * mm,
                    preserveAspectRatio=True,
                    anchor='sw',
                )
        c.showPage()

    c.save()
    pdf = buf.getvalue()
    buf.close()
    return pdf


def _filename_component(value: Optional[str]) -> str:
    cleaned = "".join((value or "").split()).upper()
    return cleaned or UNKNOWN


def build_filename(record: InspectionRecord) -> str:
    """<YYYYMMDD>_<DRIVER>_<INSPECTOR>_<REGISTRATION>.pdf, date taken in UTC."""
    date_part = record.created_at.astimezone(timezone.utc).strftime("%Y%m%d")
    parts = [
        date_part,
        _filename_component(record.driver_name),
        _filename_component(record.inspector_name),
        _filename_component(record.vehicle.registration),
    ]
    return "_".join(parts) + ".pdf"


def export_inspection(record: InspectionRecord, tz_name: Optional[str] = None) -> ExportedDocument:
    """
    Render one inspection record as a PDF.

    Raises:
        ExportError: If layout or rendering fails; no partial document is returned
    """
    try:
        layout = layout_inspection(record, tz_name)
        content = render_pdf(layout)
        filename = build_filename(record)
    except ExportError:
        raise
    except Exception as e:
        logger.error(f"Export of inspection {record.id} failed: {e}")
        raise ExportError(f"Failed to export inspection {record.id}: {e}") from e

    logger.info(
        "Inspection exported",
        extra={"inspection_id": record.id, "export_filename": filename, "pages": layout.page_count},
    )
    return ExportedDocument(filename=filename, content=content, page_count=layout.page_count)
