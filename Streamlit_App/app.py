"""
Posture Marker Analysis - Streamlit Dashboard

Photograph the subject (front, side, foot top, foot back), run the marker +
pose analysis, correct landmarks by hand and download the annotated image.

Run with: streamlit run Streamlit_App/app.py
"""

import asyncio
import logging
import time
import sys
from pathlib import Path

import cv2
import numpy as np
import streamlit as st

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from Clinical_Research.clinical_thresholds import band_edges, MarkerDetectionConfig
from Posture_Engine.core.anatomy import ViewType, VIEW_SEQUENCE
from Posture_Engine.core.posture_analyzer import PostureAnalyzer
from Posture_Engine.core.session import AnalysisSession, NoImageError, AnalysisInProgressError
from Streamlit_App.components.overlay_renderer import OverlayRenderer
from Streamlit_App.components.charts import create_metric_gauge

logger = logging.getLogger(__name__)

VIEW_TITLES = {
    ViewType.FRONT: "Front",
    ViewType.SIDE: "Side",
    ViewType.FOOT_TOP: "Foot (top)",
    ViewType.FOOT_BACK: "Foot (back)",
}

STATUS_BADGES = {
    'good': ("✅", "Good"),
    'warning': ("⚠️", "Caution"),
    'bad': ("❌", "Needs improvement"),
    'unknown': ("❓", "Unknown"),
}

# Metrics with a gauge: metric_key -> (threshold family, unit)
GAUGES = {
    'shoulder_tilt': ('shoulder', '°'),
    'pelvis_tilt': ('pelvis', '°'),
    'head_forward': ('head_forward', '%'),
    'kyphosis': ('kyphosis', '°'),
}

st.set_page_config(
    page_title="Posture Marker Analysis",
    page_icon="◉",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .stApp { background: #f8fafc; }
    .result-card {
        background: #fff;
        border: 1px solid #e2e8f0;
        border-radius: 12px;
        padding: 16px 20px;
        margin: 10px 0;
    }
    .result-card.status-good { border-left: 6px solid #059669; }
    .result-card.status-warning { border-left: 6px solid #d97706; }
    .result-card.status-bad { border-left: 6px solid #dc2626; }
    .result-card.status-unknown { border-left: 6px solid #94a3b8; }
    .result-value { font-size: 1.6rem; font-weight: 600; color: #0f172a; }
    .result-note { color: #64748b; font-size: 0.8rem; }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def load_pose_detector():
    """Pose model is optional; without it only red markers are used."""
    try:
        from Posture_Engine.detectors.pose_detector import PoseDetector
        return PoseDetector()
    except Exception as e:
        logger.warning("Pose model unavailable: %s", e)
        return None


def get_session() -> AnalysisSession:
    if 'session' not in st.session_state:
        st.session_state.session = AnalysisSession(pose_provider=load_pose_detector())
    return st.session_state.session


def advance_view():
    """Next-step button callback; runs before the rerun so the view widget can follow."""
    nxt = get_session().next_view()
    if nxt is None:
        st.session_state.wizard_done = True
    else:
        st.session_state.view_select = nxt


def decode_upload(uploaded) -> np.ndarray:
    data = np.frombuffer(uploaded.getvalue(), dtype=np.uint8)
    bgr = cv2.imdecode(data, cv2.IMREAD_COLOR)
    if bgr is None:
        raise ValueError("Could not decode the uploaded image")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def render_findings(findings):
    for key, finding in findings.items():
        emoji, status_text = STATUS_BADGES[finding.status.value]
        title = PostureAnalyzer.TITLES.get(key, key)
        note = '<div class="result-note">Provisional assessment</div>' if finding.provisional else ''
        st.markdown(
            f'<div class="result-card status-{finding.status.value}">'
            f'<h4>{emoji} {title}</h4>'
            f'<div class="result-value">{finding.value or "-"}</div>'
            f'<div>{finding.message}</div>'
            f'<small>{status_text}</small>{note}</div>',
            unsafe_allow_html=True
        )
        if key in GAUGES and finding.measurement is not None:
            family, unit = GAUGES[key]
            fig = create_metric_gauge(title, abs(finding.measurement), band_edges(family),
                                      finding.status.value, suffix=unit)
            st.plotly_chart(fig, use_container_width=True)


def main():
    session = get_session()
    st.markdown("# Posture Marker Analysis\n*Red markers + pose model, image-relative metrics*")

    with st.sidebar:
        st.markdown("## ⚙️ Capture")
        st.session_state.setdefault("view_select", session.view_type)
        view = st.selectbox("View", VIEW_SEQUENCE, key="view_select", format_func=lambda v: VIEW_TITLES[v])
        session.set_view_type(view)

        step = VIEW_SEQUENCE.index(session.view_type)
        st.progress((step + 1) / len(VIEW_SEQUENCE), text=f"Step {step + 1} of {len(VIEW_SEQUENCE)}")

        if session.pose_provider is None:
            st.caption("📐 Pose model not loaded - using red markers only")

        st.divider()
        if st.button("🔄 Reset", use_container_width=True):
            session.reset()
            st.rerun()
        st.button("➡️ Next step", use_container_width=True, on_click=advance_view)
        if st.session_state.get("wizard_done"):
            st.success("All views captured. Review the summary below.")

    uploaded = st.file_uploader("Photo", type=["jpg", "jpeg", "png"])
    if uploaded is not None and st.session_state.get('upload_id') != uploaded.file_id:
        try:
            session.load_image(decode_upload(uploaded))
            st.session_state.upload_id = uploaded.file_id
        except ValueError as e:
            st.error(str(e))

    col_image, col_results = st.columns([1.2, 1])

    with col_results:
        st.markdown("### 📋 Results")
        if st.button("▶️ Analyze", use_container_width=True, type="primary"):
            try:
                with st.spinner("Analyzing..."):
                    started = time.time()
                    findings = asyncio.run(session.analyze())
                if findings is None:
                    st.info("Image changed during analysis; run it again.")
                else:
                    st.caption(f"{len(session.landmarks)} landmarks in {time.time() - started:.1f}s")
            except NoImageError:
                st.error("Select an image first")
            except AnalysisInProgressError:
                st.warning("Analysis already running")

        manual = st.toggle("Manual correction", value=False, disabled=not session.landmarks)
        if manual and session.landmarks:
            options = {f"{lm.label} ({lm.id})": lm for lm in session.landmarks}
            choice = st.selectbox("Landmark", list(options))
            target = options[choice]
            w, h = session.image_size
            # Model keypoints may fall slightly outside the frame
            cx, cy = float(np.clip(target.x, 0, w)), float(np.clip(target.y, 0, h))
            x = st.number_input("x", 0.0, float(w), cx, step=1.0)
            y = st.number_input("y", 0.0, float(h), cy, step=1.0)
            if (x, y) != (cx, cy):
                session.corrections.update_position(target.id, x, y)
            if st.button("✔️ Confirm correction", use_container_width=True):
                session.confirm_correction()

        if session.findings:
            render_findings(session.findings)

    with col_image:
        st.markdown(f"### 📷 {VIEW_TITLES[session.view_type]} view")
        if session.image is not None:
            annotated = OverlayRenderer().render(session.image, session.landmarks, session.view_type,
                                                 show_labels=manual)
            st.image(annotated, use_container_width=True)
            ok, png = cv2.imencode(".png", cv2.cvtColor(annotated, cv2.COLOR_RGB2BGR))
            if ok:
                st.download_button("💾 Save image", png.tobytes(),
                                   file_name=f"posture_analysis_{session.view_type.value}_{int(time.time())}.png",
                                   mime="image/png")
        else:
            st.info("📷 Upload a photo to begin")

    if len(session.results_by_view) > 1:
        st.markdown("---")
        st.markdown("### 🧾 Summary")
        for view_type, findings in session.results_by_view.items():
            statuses = ", ".join(f"{PostureAnalyzer.TITLES[k]}: {f.status.value}" for k, f in findings.items())
            issues = sum(1 for f in findings.values() if f.needs_attention)
            st.markdown(f"**{VIEW_TITLES[view_type]}** ({issues} to review) - {statuses}")

    st.markdown("---")
    st.markdown('<div style="text-align:center;color:#94a3b8;font-size:0.8rem;">'
                f'Markers: R&gt;{MarkerDetectionConfig.MIN_RED}, G&lt;{MarkerDetectionConfig.MAX_GREEN}, '
                f'B&lt;{MarkerDetectionConfig.MAX_BLUE} • All measurements are image-relative</div>',
                unsafe_allow_html=True)


if __name__ == "__main__":
    main()
