"""Attribution lookup for tile providers."""

from openmap.core.config import PROVIDERS, MapStyle, parse_map_style


def get_attribution(style: MapStyle | str) -> tuple[str, str]:
    """Get the required attribution for a map style.

    Pure lookup with no I/O. Callers are responsible for displaying the text
    on the rendered map or its container.

    Args:
        style: Map style or style name

    Returns:
        Tuple of (attribution text, attribution URL)
    """
    provider = PROVIDERS[parse_map_style(style)]
    return provider.attribution_text, provider.attribution_url


def build_attribution_from_styles(styles: list[MapStyle]) -> str:
    """Build one attribution string for maps that combine several styles.

    Args:
        styles: Styles used in the composition

    Returns:
        Attribution string with de-duplicated provider attributions joined by "; "
    """
    attributions = []
    seen = set()

    for style in styles:
        text, _ = get_attribution(style)
        if text and text not in seen:
            attributions.append(text)
            seen.add(text)

    return "; ".join(attributions)
