"""QuickChart gauge URLs for the Fear & Greed score."""
import json

import httpx

from fear_greed_bot.constants import (CHART_HEIGHT, CHART_WIDTH, GAUGE_COLORS,
                                      GAUGE_SEGMENTS, QUICKCHART_URL)


def gauge_chart_url(score: float | str) -> str:
    """URL of a gauge image showing the score (0-100).

    The image is rendered by QuickChart on request; nothing is fetched here.
    """
    config = {
        "type": "gauge",
        "data": {
            "datasets": [
                {
                    "value": float(score),
                    "data": list(GAUGE_SEGMENTS),
                    "backgroundColor": list(GAUGE_COLORS),
                    "borderWidth": 0,
                }
            ]
        },
        "options": {
            "valueLabel": {
                "fontSize": 22,
                "backgroundColor": "transparent",
                "color": "#000",
                "bottomMarginPercentage": 10,
            }
        },
    }
    url = httpx.URL(
        QUICKCHART_URL,
        params={
            "c": json.dumps(config, separators=(",", ":")),
            "w": CHART_WIDTH,
            "h": CHART_HEIGHT,
        },
    )
    return str(url)
