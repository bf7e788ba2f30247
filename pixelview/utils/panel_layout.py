"""Panel ("strip") layout for documents far more elongated than the screen."""

from pixelview.models.document import Panel, PanelLayout, ScreenBox, Size
from pixelview.utils.viewport import presentation_rect

PANEL_GAP = 16.0
PANEL_MIN_OVERLAP = 1.0 / 32  # content shared by neighbouring panels, of screen length
MIN_PANELS = 3
MAX_PANELS = 64


def is_horizontal_strip(raw: Size, screen: Size) -> bool:
    """True if the document is relatively wider than the screen.

    The panel axis follows the document's shape relative to the screen,
    not the screen's longer side: a tall strip on a landscape screen is
    still split into side-by-side columns. This keeps the panel count
    growing with the document's elongation in either direction.
    """
    return raw.width * screen.height >= raw.height * screen.width


def _covering_zoom(count: int, doc_along: float, screen_along: float) -> float:
    # zoom at which `count` screen-long windows cover the document with the
    # minimum overlap between neighbours
    overlap = screen_along * PANEL_MIN_OVERLAP
    return (count * screen_along - (count - 1) * overlap) / doc_along


def panel_count(raw: Size, screen: Size, gap: float = PANEL_GAP) -> int:
    """Largest number of stacked panels that still fits the screen, or 0."""
    if not (raw.is_valid and screen.is_valid):
        return 0
    if is_horizontal_strip(raw, screen):
        doc_along, doc_across = raw.width, raw.height
        screen_along, screen_across = screen.width, screen.height
    else:
        doc_along, doc_across = raw.height, raw.width
        screen_along, screen_across = screen.height, screen.width

    count = 0
    for n in range(1, MAX_PANELS + 1):
        zoom = _covering_zoom(n, doc_along, screen_along)
        stacked = n * doc_across * zoom + (n - 1) * gap
        if stacked > screen_across:
            break
        count = n
    return count


def compute_panel_layout(raw: Size, screen: Size, gap: float = PANEL_GAP,
                         min_panels: int = MIN_PANELS) -> PanelLayout:
    """Split the screen into congruent panels, each showing a shifted slice
    of the document along its long axis.

    Panels are stacked across the document's long axis and centered on the
    screen. Each one spans the full screen along the long axis; panel ``i``
    shows the document shifted by ``i * step`` where
    ``step = (screen_along - panel_along) / (count - 1)``. An empty layout
    means panel mode is unavailable.
    """
    count = panel_count(raw, screen, gap)
    if count < max(2, min_panels):
        return ()
    horizontal = is_horizontal_strip(raw, screen)
    if horizontal:
        doc_along, doc_across = raw.width, raw.height
        screen_along, screen_across = screen.width, screen.height
    else:
        doc_along, doc_across = raw.height, raw.width
        screen_along, screen_across = screen.height, screen.width

    zoom = _covering_zoom(count, doc_along, screen_along)
    panel_along = doc_along * zoom
    panel_across = doc_across * zoom
    step = (screen_along - panel_along) / (count - 1)
    start = (screen_across - (count * panel_across + (count - 1) * gap)) * 0.5

    panels = []
    for i in range(count):
        along0 = i * step
        across0 = start + i * (panel_across + gap)
        if horizontal:
            area = presentation_rect(along0, across0, panel_along, panel_across, screen)
            clip = ScreenBox(0.0, across0, screen_along, panel_across)
        else:
            area = presentation_rect(across0, along0, panel_across, panel_along, screen)
            clip = ScreenBox(across0, 0.0, panel_across, screen_along)
        panels.append(Panel(area=area, clip=clip))
    return tuple(panels)
