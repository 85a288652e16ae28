from .canvas import draw_hline, draw_vline, fill_rect, new_canvas, region
from .draw_lines import draw_polyline, smooth_path
from .draw_markers import draw_markers
from .draw_polygons import fill_polygon
from .draw_text import draw_text, draw_text_centered, text_size

__all__ = [
    "draw_hline",
    "draw_markers",
    "draw_polyline",
    "draw_text",
    "draw_text_centered",
    "draw_vline",
    "fill_polygon",
    "fill_rect",
    "new_canvas",
    "region",
    "smooth_path",
    "text_size",
]
