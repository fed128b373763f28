"""Response assembler."""

from typing import Any, Dict, List

from stacsearch.search.models import ResultPage


def assemble(
    page: ResultPage,
    features: List[Dict[str, Any]],
    links: List[Dict[str, Any]],
    limit: int,
    page_number: int,
) -> Dict[str, Any]:
    """Package projected features, paging metadata and links into a FeatureCollection."""
    return {
        "type": "FeatureCollection",
        "features": features,
        "numberMatched": page.matched,
        "numberReturned": page.returned,
        "context": {
            "page": page_number,
            "limit": limit,
            "matched": page.matched,
            "returned": page.returned,
        },
        "links": links,
    }
