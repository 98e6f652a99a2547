import os

import numpy as np
from loguru import logger

from stripchart import HostRegion, PointerEvent, StripChart, configure_logging

# --- User configuration dictionary ---
CONFIG = {
    "LOG_LEVEL": "INFO",  # logging level: DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL
    "WIDTH": 875,  # host width in pixels
    "HEIGHT": 400,  # host height in pixels
    "PIXEL_RATIO": 1,  # device pixels per logical pixel
    "OUTPUT_PATH": "./demo_output/",
    "SEED": 0,
    # ---
    "CHARTS": [
        {
            "name": "chart1",
            "title": "Default / Consolas",
            "xlabel": "Time (s)",
            "ylabel": "Energy (uJ)",
            "font": "10pt Consolas, Courier, Fixed",
            "signal": "sine",
            "range": (50.2, 782.3),
        },
        {
            "name": "chart2",
            "title": "Default / Courier",
            "xlabel": "Fornight",
            "ylabel": "Furlongs",
            "font": "10pt Courier, Fixed",
            "signal": "cubic",
            "range": (-1.0, 1.75),
        },
        {
            "name": "chart3",
            "title": "no Y origin, 12pt Garamond",
            "xlabel": "Time (s)",
            "ylabel": "Bouncieness",
            "font": "12pt Garamond",
            "stroke-style": "blue",
            "signal": "sinc",
            "range": (-143.72, -25.0),
        },
        {
            "name": "chart4",
            "title": "2px line width",
            "xlabel": "Time (s)",
            "ylabel": "Energy (uJ)",
            "font": "10pt Consolas, Courier, Fixed",
            "line-width": "2",
            "origin": None,
            "stroke-style": "orange",
            "signal": "sinc",
            "range": (-209.0, -208.002),
        },
        {
            "name": "chart5",
            "title": "1,000,000 points with noise",
            "signal": "noisy_sinc",
            "range": (-209.0, 17.2),
            "num_points": 1_000_000,
        },
        {
            "name": "chart6",
            "title": "noise, min/avg/max (zoom to see)",
            "signal": "uniform",
            "range": (0.0, 1.0),
            "num_points": 1_000_000,
        },
        {
            "name": "chart7",
            "title": "Resize, no zoom",
            "signal": "sine_unit",
            "range": (-10.0, 10.0),
            "num_points": 1000,
        },
    ],
}

STYLE_KEYS = ("title", "xlabel", "ylabel", "font", "stroke-style", "line-width", "origin")


def make_signal(kind: str, x: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Synthesize the demo signal ``kind`` at positions ``x``."""
    if kind == "sine":
        return 5.35 * np.sin(x / 150) - 1.3
    if kind == "cubic":
        return (5.05 / 2) * x**3 - (3 / 2) * x
    if kind == "sine_unit":
        return np.sin(x)
    if kind == "uniform":
        return rng.random(len(x))

    with np.errstate(divide="ignore", invalid="ignore"):
        y = np.where(x == 0, 1.0, np.sin(x) / x)
    if kind == "noisy_sinc":
        y = y + y * (rng.random(len(x)) * 0.2 - 0.1)
    return y


def main() -> None:
    """
    Render every demo chart, exercise a zoom on each, and save the images.
    """
    configure_logging(CONFIG.get("LOG_LEVEL", "INFO"))
    os.makedirs(CONFIG["OUTPUT_PATH"], exist_ok=True)
    rng = np.random.default_rng(CONFIG["SEED"])

    for chart_config in CONFIG["CHARTS"]:
        host = HostRegion.for_chart(CONFIG["WIDTH"], CONFIG["HEIGHT"])
        chart = StripChart(host, pixel_ratio=CONFIG["PIXEL_RATIO"])
        for key in STYLE_KEYS:
            if key in chart_config:
                chart.set(key, chart_config[key])

        p0, pn = chart_config["range"]
        # Without an explicit count, synthesize one sample per pixel
        num_points = chart_config.get("num_points", int(chart.width_in_pixels()))
        step = abs(pn - p0) / num_points
        x = p0 + np.arange(num_points) * step
        chart.attach(make_signal(chart_config["signal"], x, rng), step, p0)
        chart.draw()

        name = chart_config["name"]
        chart.save(os.path.join(CONFIG["OUTPUT_PATH"], f"{name}.png"))

        # Drag across the middle third of the plot, then save the zoomed view
        rect = chart.viewport.rect
        y = host.height - rect.ty - rect.h / 2
        chart.handle_pointer(PointerEvent.PRESS, rect.tx + rect.w / 3, y)
        chart.handle_pointer(PointerEvent.MOVE, rect.tx + 2 * rect.w / 3, y)
        chart.handle_pointer(PointerEvent.RELEASE, rect.tx + 2 * rect.w / 3, y)
        if chart.zoom_depth:
            chart.save(os.path.join(CONFIG["OUTPUT_PATH"], f"{name}_zoom.png"))
        else:
            logger.warning(f"{name}: zoom selection was rejected")


if __name__ == "__main__":
    main()
