"""Export pipeline: rendered view -> single-page A4 PDF on disk.

Process:
    * Lay the view's HTML out on one page of the viewport's size (WeasyPrint).
    * Raster mode: rasterize that page at ``scale``x (PyMuPDF) and place the
      bitmap on an A4 page. Vector mode: place the laid-out page itself,
      keeping a selectable text layer.
    * Either way the content is scaled uniformly to fit the page, centered
      horizontally and anchored to the top. Anything past the first page of
      the layout is clipped, never paginated.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

import fitz  # PyMuPDF

from cvcraft.base import RenderedView
from cvcraft.exceptions import ExportError
from cvcraft.logger import get_logger
from cvcraft.util import document_filename

log = get_logger('export')

A4_MM = (210.0, 297.0)
PT_PER_MM = 72 / 25.4
PX_PER_PT = 96 / 72
EXPORT_MODES = ('raster', 'vector')


@dataclass(frozen=True)
class Bitmap:
    png: bytes
    width: int
    height: int


@dataclass(frozen=True)
class Placement:
    """Where the content lands on the page, in millimetres."""

    x: float
    y: float
    width: float
    height: float
    scale: float

    def to_rect(self) -> fitz.Rect:
        return fitz.Rect(
            self.x * PT_PER_MM,
            self.y * PT_PER_MM,
            (self.x + self.width) * PT_PER_MM,
            (self.y + self.height) * PT_PER_MM,
        )


def fit_to_page(
    content_width: float,
    content_height: float,
    page_width: float = A4_MM[0],
    page_height: float = A4_MM[1],
) -> Placement:
    """Scale content uniformly to fit the page, centered horizontally, top-anchored.

    >>> p = fit_to_page(1588, 2246)
    >>> round(p.width, 3) <= 210 and round(p.height, 3) <= 297 and p.y == 0
    True
    >>> fit_to_page(400, 100).x
    0.0
    """
    if content_width <= 0 or content_height <= 0:
        raise ExportError(
            f"Cannot place empty content ({content_width}x{content_height})"
        )
    ratio = min(page_width / content_width, page_height / content_height)
    width = content_width * ratio
    height = content_height * ratio
    return Placement(
        x=(page_width - width) / 2, y=0.0, width=width, height=height, scale=ratio
    )


# ---------------------------- layout & raster ---------------------------- #


def layout_pdf(view: RenderedView) -> bytes:
    """Lay the view out with WeasyPrint, one viewport-sized page per page box."""
    try:
        import weasyprint  # type: ignore
    except (ImportError, OSError) as e:
        raise ExportError(
            "WeasyPrint (and its system libraries) is required to export documents"
        ) from e
    try:
        return weasyprint.HTML(string=view.html).write_pdf()
    except Exception as e:
        raise ExportError(f"Layout failed: {e}") from e


class Rasterizer(Protocol):
    """Protocol for turning a rendered view into a bitmap."""

    def rasterize(self, view: RenderedView, scale: float) -> Bitmap: ...


class WeasyPrintRasterizer:
    """Rasterizes the first laid-out page with PyMuPDF.

    ``scale`` is relative to CSS pixels: at 2.0 a 794px wide viewport gives a
    1588px wide bitmap.
    """

    def rasterize(self, view: RenderedView, scale: float) -> Bitmap:
        with fitz.open(stream=layout_pdf(view), filetype='pdf') as src:
            zoom = scale * PX_PER_PT
            pix = src[0].get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            return Bitmap(png=pix.tobytes('png'), width=pix.width, height=pix.height)


# ---------------------------- document assembly ---------------------------- #


@dataclass
class ExportConfig:
    mode: str = 'raster'  # raster or vector
    scale: float = 2.0
    page_mm: tuple = A4_MM

    def __post_init__(self):
        if self.mode not in EXPORT_MODES:
            raise ValueError(f"Unknown export mode: {self.mode}")
        if self.scale <= 0:
            raise ValueError(f"Export scale must be positive, got {self.scale}")


@dataclass(frozen=True)
class ExportResult:
    path: Path
    size: int
    placement: Placement
    mode: str


class DocumentExporter:
    """Builds and saves single-page documents from rendered views."""

    def __init__(
        self,
        config: Optional[ExportConfig] = None,
        *,
        rasterizer: Optional[Rasterizer] = None,
    ):
        self.config = config or ExportConfig()
        self.rasterizer = rasterizer or WeasyPrintRasterizer()

    def _new_page(self, doc: fitz.Document) -> fitz.Page:
        width_mm, height_mm = self.config.page_mm
        return doc.new_page(width=width_mm * PT_PER_MM, height=height_mm * PT_PER_MM)

    def build_document(self, view: Optional[RenderedView]) -> tuple[bytes, Placement]:
        """Return the PDF bytes for ``view`` and where its content was placed."""
        if view is None:
            log.error("export requested without a rendered view")
            raise ExportError("Nothing to export: the resume view is not rendered")
        if self.config.mode == 'vector':
            return self._build_vector(view)
        return self._build_raster(view)

    def _build_raster(self, view: RenderedView) -> tuple[bytes, Placement]:
        bitmap = self.rasterizer.rasterize(view, self.config.scale)
        placement = fit_to_page(bitmap.width, bitmap.height, *self.config.page_mm)
        with fitz.open() as doc:
            page = self._new_page(doc)
            page.insert_image(placement.to_rect(), stream=bitmap.png)
            return doc.tobytes(deflate=True), placement

    def _build_vector(self, view: RenderedView) -> tuple[bytes, Placement]:
        with fitz.open(stream=layout_pdf(view), filetype='pdf') as src:
            src_rect = src[0].rect
            placement = fit_to_page(src_rect.width, src_rect.height, *self.config.page_mm)
            with fitz.open() as doc:
                page = self._new_page(doc)
                page.show_pdf_page(placement.to_rect(), src, 0)
                return doc.tobytes(deflate=True), placement

    def export(
        self,
        view: Optional[RenderedView],
        output_dir: Union[str, Path] = '.',
        *,
        filename: Optional[str] = None,
    ) -> ExportResult:
        """Build the document and save it as ``<Full_Name>_Resume.pdf``."""
        data, placement = self.build_document(view)
        output_dir = Path(output_dir).expanduser()
        # only the final component of the name; the file stays in output_dir
        path = output_dir / Path(filename or document_filename(view.title)).name
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            log.error(f"could not write {path}: {e}")
            raise ExportError(f"Could not save {path}: {e}") from e
        log.success(f"saved {path} ({len(data)} bytes, {self.config.mode})")
        return ExportResult(path=path, size=len(data), placement=placement, mode=self.config.mode)


def export_to_document(
    view: Optional[RenderedView],
    *,
    output_dir: Union[str, Path] = '.',
    config: Optional[ExportConfig] = None,
    rasterizer: Optional[Rasterizer] = None,
) -> ExportResult:
    """Export ``view`` to a single-page A4 PDF in ``output_dir``."""
    return DocumentExporter(config, rasterizer=rasterizer).export(view, output_dir)
