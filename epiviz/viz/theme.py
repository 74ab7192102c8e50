import warnings
from itertools import cycle, islice
from typing import Any, Dict, List, Tuple

import altair as alt

from epiviz.config.observability import log_warning

# Public Health England brand colours.
PHE_COLOURS: List[str] = [
    "#822433", "#00B092", "#002776", "#EAAB00", "#8CB8C6",
    "#E9994A", "#00A551", "#A4AEB5", "#00549F", "#DAD7CB",
]

# ColorBrewer qualitative schemes in the order ggplot numbers them (1-8).
# Smaller class counts of a qualitative scheme are prefixes of the largest one.
BREWER_QUALITATIVE: List[Tuple[str, List[str]]] = [
    ("Accent", ["#7FC97F", "#BEAED4", "#FDC086", "#FFFF99", "#386CB0", "#F0027F", "#BF5B17", "#666666"]),
    ("Dark2", ["#1B9E77", "#D95F02", "#7570B3", "#E7298A", "#66A61E", "#E6AB02", "#A6761D", "#666666"]),
    ("Paired", [
        "#A6CEE3", "#1F78B4", "#B2DF8A", "#33A02C", "#FB9A99", "#E31A1C",
        "#FDBF6F", "#FF7F00", "#CAB2D6", "#6A3D9A", "#FFFF99", "#B15928",
    ]),
    ("Pastel1", ["#FBB4AE", "#B3CDE3", "#CCEBC5", "#DECBE4", "#FED9A6", "#FFFFCC", "#E5D8BD", "#FDDAEC", "#F2F2F2"]),
    ("Pastel2", ["#B3E2CD", "#FDCDAC", "#CBD5E8", "#F4CAE4", "#E6F5C9", "#FFF2AE", "#F1E2CC", "#CCCCCC"]),
    ("Set1", ["#E41A1C", "#377EB8", "#4DAF4A", "#984EA3", "#FF7F00", "#FFFF33", "#A65628", "#F781BF", "#999999"]),
    ("Set2", ["#66C2A5", "#FC8D62", "#8DA0CB", "#E78AC3", "#A6D854", "#FFD92F", "#E5C494", "#B3B3B3"]),
    ("Set3", [
        "#8DD3C7", "#FFFFB3", "#BEBADA", "#FB8072", "#80B1D3", "#FDB462",
        "#B3DE69", "#FCCDE5", "#D9D9D9", "#BC80BD", "#CCEBC5", "#FFED6F",
    ]),
]

SHADE_RANGE: Tuple[float, float] = (0.35, 1.0)
BAR_OUTLINE = "black"
PANEL_GREY = "#EBEBEB"
PLOT_PADDING_PX = 19  # 0.5cm


def apply_theme() -> None:
    alt.theme.enable("none")
    alt.data_transformers.disable_max_rows()


def resolve_palette(palette: Any) -> List[str]:
    """Colours for ``palette``: 'phe' or a ColorBrewer qualitative number 1-8.

    Anything else falls back to 'phe' with a warning.
    """
    if isinstance(palette, str) and palette.strip().lower() == "phe":
        return PHE_COLOURS
    if isinstance(palette, int) and not isinstance(palette, bool) and 1 <= palette <= len(BREWER_QUALITATIVE):
        return BREWER_QUALITATIVE[palette - 1][1]
    message = "palette must either be an integer from 1 to 8 or 'phe', using 'phe'"
    warnings.warn(message, UserWarning, stacklevel=2)
    log_warning("epicurve.palette_fallback", message, palette=palette)
    return PHE_COLOURS


def fill_colours(palette: List[str], n: int) -> List[str]:
    return list(islice(cycle(palette), n))


def style_chart(chart: Any, blank_background: bool) -> Any:
    """Apply the epicurve look: bold titles, black text, right-hand legend."""
    axis_config: Dict[str, Any] = {
        "labelFontSize": 11,
        "labelColor": "black",
        "titleFontSize": 13,
        "titleFontWeight": "bold",
        "titleColor": "black",
        "titlePadding": 20,
        "domainColor": "black",
        "tickColor": "black",
    }
    if blank_background:
        axis_config["grid"] = False
        view_config: Dict[str, Any] = {"strokeWidth": 0}
    else:
        axis_config.update(grid=True, gridColor="white")
        view_config = {"strokeWidth": 0, "fill": PANEL_GREY}

    return (
        chart.properties(padding=PLOT_PADDING_PX)
        .configure_axis(**axis_config)
        .configure_view(**view_config)
        .configure_title(fontSize=11, fontWeight="bold", color="black")
        .configure_legend(
            orient="right",
            titleFontSize=11,
            titleFontWeight="bold",
            titleColor="black",
            labelFontSize=11,
            labelColor="black",
            labelAlign="left",
        )
        .configure_header(labelFontSize=13, labelFontWeight="bold", labelColor="black")
    )
