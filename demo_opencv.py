#!/usr/bin/env python3
"""
Posture Marker Analysis - Standalone OpenCV Demo
Analyze a single photo without Streamlit.

Usage: python demo_opencv.py photo.jpg --view front --output annotated.png

Options:
    --view        front | side | foot-top | foot-back
    --full-scan   check every pixel for red markers (slower, higher recall)
    --no-pose     skip the pose model, use red markers only
    --show        open a window with the annotated image; drag a landmark
                  with the mouse, press 'c' to re-grade, 'q' or Esc to close
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path

import cv2

from Clinical_Research.clinical_thresholds import MarkerDetectionConfig
from Posture_Engine.core.anatomy import ViewType
from Posture_Engine.core.marker_extractor import ColorMarkerExtractor
from Posture_Engine.core.posture_analyzer import PostureAnalyzer
from Posture_Engine.core.session import AnalysisSession
from Streamlit_App.components.overlay_renderer import OverlayRenderer


STATUS_ICONS = {'good': 'OK ', 'warning': '!! ', 'bad': 'XX ', 'unknown': '?? '}
WINDOW_NAME = "Posture Marker Analysis"


def parse_args():
    parser = argparse.ArgumentParser(description="Posture Marker Analysis Demo")
    parser.add_argument("image", type=Path, help="Photo to analyze")
    parser.add_argument("--view", "-v", choices=[v.value for v in ViewType], default="front", help="View type")
    parser.add_argument("--output", "-o", type=Path, help="Write annotated image here")
    parser.add_argument("--full-scan", action="store_true", help="Scan every pixel")
    parser.add_argument("--no-pose", action="store_true", help="Red markers only")
    parser.add_argument("--show", action="store_true", help="Display the result")
    parser.add_argument("--debug", action="store_true", help="Verbose pipeline logging")
    return parser.parse_args()


class MarkerAnalysisDemo:
    def __init__(self, view_type: ViewType, full_scan: bool = False, use_pose: bool = True):
        print("Posture Marker Analysis - Initializing...")
        self.config = config = MarkerDetectionConfig()

        self.pose_detector = None
        if use_pose:
            print("   Loading pose model...")
            try:
                from Posture_Engine.detectors.pose_detector import PoseDetector
                self.pose_detector = PoseDetector()
            except Exception as e:
                print(f"   Pose model unavailable ({e}); using red markers only")

        extractor = ColorMarkerExtractor(config, step=1 if full_scan else None)
        self.session = AnalysisSession(pose_provider=self.pose_detector, view_type=view_type,
                                       config=config, extractor=extractor)
        self.overlay = OverlayRenderer(show_labels=True)
        self._dirty = False

    def run(self, image_path: Path):
        bgr = cv2.imread(str(image_path))
        if bgr is None:
            raise SystemExit(f"Could not read image: {image_path}")
        self.session.load_image(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))

        w, h = self.session.image_size
        print(f"   Analyzing {image_path.name} ({w}x{h}, {self.session.view_type.value} view)")
        findings = asyncio.run(self.session.analyze())

        markers = sum(1 for lm in self.session.landmarks if lm.is_color_marker)
        print(f"   {len(self.session.landmarks)} landmarks ({markers} red markers)\n")
        for lm in self.session.landmarks:
            print(f"   - {lm.label:<16} ({lm.x:7.1f}, {lm.y:7.1f})  conf {lm.confidence:.2f}")
        print()
        self.print_findings(findings)
        return findings

    def print_findings(self, findings):
        for key, finding in findings.items():
            title = PostureAnalyzer.TITLES.get(key, key)
            suffix = " (provisional)" if finding.provisional else ""
            print(f"   {STATUS_ICONS[finding.status.value]}{title:<22} {finding.value or '-':<20} {finding.message}{suffix}")
        issues = sum(1 for f in findings.values() if f.needs_attention)
        print(f"\n   {issues} of {len(findings)} metrics need attention")

    def save(self, output: Path):
        bgr = self.render_bgr()
        cv2.imwrite(str(output), bgr)
        print(f"\n   Saved annotated image to {output}")
        return bgr

    def render_bgr(self):
        annotated = self.overlay.render(self.session.image, self.session.landmarks, self.session.view_type)
        return cv2.cvtColor(annotated, cv2.COLOR_RGB2BGR)

    def on_mouse(self, event, x, y, flags, param=None):
        """Pick the landmark under the pointer, drag it, drop it on release."""
        corrections = self.session.corrections
        if event == cv2.EVENT_LBUTTONDOWN:
            picked = corrections.begin_drag(x, y, self.config.POINTER_RADIUS)
            if picked is not None:
                print(f"   Moving {picked.label}")
        elif event == cv2.EVENT_MOUSEMOVE and corrections.is_dragging:
            corrections.drag_to(x, y)
            self._dirty = True
        elif event == cv2.EVENT_LBUTTONUP and corrections.is_dragging:
            corrections.end_drag()
            self._dirty = True

    def confirm(self):
        print("\n   Re-grading with corrected landmarks")
        findings = self.session.confirm_correction()
        self.print_findings(findings)
        self._dirty = True
        return findings

    def show(self):
        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
        cv2.setMouseCallback(WINDOW_NAME, self.on_mouse)
        cv2.imshow(WINDOW_NAME, self.render_bgr())
        print("\n   Drag landmarks to correct them, 'c' to re-grade, 'q' to quit")
        while cv2.getWindowProperty(WINDOW_NAME, cv2.WND_PROP_VISIBLE) >= 1:
            key = cv2.waitKey(30) & 0xFF
            if key in (ord('q'), 27):
                break
            if key == ord('c'):
                self.confirm()
            if self._dirty:
                self._dirty = False
                cv2.imshow(WINDOW_NAME, self.render_bgr())
        cv2.destroyAllWindows()

    def cleanup(self):
        if self.pose_detector is not None:
            self.pose_detector.close()


def main():
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    print("\n" + "=" * 50)
    print("  Posture Marker Analysis")
    print("  Red markers + pose model • image-relative metrics")
    print("=" * 50 + "\n")

    demo = MarkerAnalysisDemo(ViewType(args.view), full_scan=args.full_scan, use_pose=not args.no_pose)
    try:
        demo.run(args.image)
        if args.show:
            demo.show()
        if args.output:
            demo.save(args.output)
    finally:
        demo.cleanup()
    return 0


if __name__ == "__main__":
    sys.exit(main())
