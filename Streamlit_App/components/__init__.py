"""Streamlit UI components."""
from .overlay_renderer import OverlayRenderer
from .charts import create_metric_gauge
