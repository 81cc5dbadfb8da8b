import asyncio
import logging

import pytest

from Posture_Engine.core.anatomy import ViewType
from Posture_Engine.core.landmarks import FindingStatus, LandmarkSource
from Posture_Engine.core.session import AnalysisSession, NoImageError, AnalysisInProgressError


def test_analyze_without_image_is_rejected():
    with pytest.raises(NoImageError):
        asyncio.run(AnalysisSession().analyze())


def test_confirm_without_image_is_rejected():
    with pytest.raises(NoImageError):
        AnalysisSession().confirm_correction()


def test_load_image_rejects_non_images():
    with pytest.raises(ValueError):
        AnalysisSession().load_image([[1, 2], [3, 4]])


def test_blank_image_without_pose_gives_unknown_findings(blank_image):
    session = AnalysisSession()
    session.load_image(blank_image())

    findings = asyncio.run(session.analyze())

    assert session.landmarks == []
    assert set(findings) == {'shoulder_tilt', 'pelvis_tilt', 'leg_alignment'}
    assert all(f.status == FindingStatus.UNKNOWN for f in findings.values())


def test_full_pass_fuses_markers_and_keypoints(blank_image, paint_marker, fake_provider, keypoint):
    image = blank_image()
    paint_marker(image, 40, 40)
    paint_marker(image, 160, 40)
    provider = fake_provider([keypoint('left_shoulder', 45, 42), keypoint('right_hip', 100, 150, 0.7)])
    session = AnalysisSession(pose_provider=provider)
    session.load_image(image)

    asyncio.run(session.analyze())

    labels = [lm.label for lm in session.landmarks]
    assert labels == ['Marker 1', 'Marker 2', 'right hip']
    assert (session.landmarks[0].x, session.landmarks[0].y) == (40.0, 40.0)
    assert session.landmarks[2].source == LandmarkSource.MODEL_KEYPOINT
    assert provider.calls == 1


def test_provider_failure_falls_back_to_markers(blank_image, paint_marker, fake_provider, caplog):
    image = blank_image()
    paint_marker(image, 100, 100)
    session = AnalysisSession(pose_provider=fake_provider(error=RuntimeError("model crashed")))
    session.load_image(image)

    with caplog.at_level(logging.WARNING):
        findings = asyncio.run(session.analyze())

    assert [lm.label for lm in session.landmarks] == ['Marker 1']
    assert findings['shoulder_tilt'].status == FindingStatus.UNKNOWN
    assert "model crashed" in caplog.text


def test_provider_timeout_counts_as_no_keypoints(blank_image, fake_provider, keypoint):
    provider = fake_provider([keypoint('left_shoulder', 50, 50)], delay=1.0)
    session = AnalysisSession(pose_provider=provider, provider_timeout=0.01)
    session.load_image(blank_image())

    findings = asyncio.run(session.analyze())

    assert findings is not None
    assert session.landmarks == []


def test_result_is_discarded_when_image_changes_mid_call(blank_image, fake_provider, keypoint):
    provider = fake_provider([keypoint('left_shoulder', 50, 50), keypoint('right_shoulder', 150, 50)])
    session = AnalysisSession(pose_provider=provider)
    session.load_image(blank_image())
    provider.on_call = lambda: session.load_image(blank_image(100, 100))

    assert asyncio.run(session.analyze()) is None
    assert session.landmarks == []
    assert session.findings == {}


def test_result_is_discarded_after_reset_mid_call(blank_image, fake_provider, keypoint):
    provider = fake_provider([keypoint('left_shoulder', 50, 50)])
    session = AnalysisSession(pose_provider=provider)
    session.load_image(blank_image())
    provider.on_call = session.reset

    assert asyncio.run(session.analyze()) is None
    assert session.image is None


def test_second_pass_while_first_is_pending_is_rejected(blank_image):
    async def scenario():
        gate = asyncio.Event()

        class GatedProvider:
            async def estimate_poses(self, image):
                await gate.wait()
                return []

        session = AnalysisSession(pose_provider=GatedProvider())
        session.load_image(blank_image())
        first = asyncio.create_task(session.analyze())
        await asyncio.sleep(0)

        assert session.is_analyzing
        with pytest.raises(AnalysisInProgressError):
            await session.analyze()

        gate.set()
        return await first, session

    findings, session = asyncio.run(scenario())

    assert findings is not None
    assert not session.is_analyzing


def test_manual_correction_then_confirm_regrades(blank_image, fake_provider, keypoint):
    provider = fake_provider([keypoint('left_shoulder', 100, 100), keypoint('right_shoulder', 200, 100)])
    session = AnalysisSession(pose_provider=provider)
    session.load_image(blank_image(300, 300))

    before = asyncio.run(session.analyze())
    picked = session.corrections.find_nearest(102, 98, 20)
    session.corrections.update_position(picked.id, 100, 120)
    after = session.confirm_correction()

    assert before['shoulder_tilt'].status == FindingStatus.GOOD
    assert after['shoulder_tilt'].status == FindingStatus.BAD
    assert after['shoulder_tilt'].value == "11.3°"
    assert session.findings is after
    assert provider.calls == 1


def test_side_view_uses_image_width(blank_image, fake_provider, keypoint):
    provider = fake_provider([keypoint('left_ear', 530, 100), keypoint('left_shoulder', 500, 250),
                              keypoint('left_hip', 500, 500)])
    session = AnalysisSession(pose_provider=provider, view_type=ViewType.SIDE)
    session.load_image(blank_image(1000, 600))

    findings = asyncio.run(session.analyze())

    assert findings['head_forward'].value == "3.0%"
    assert findings['head_forward'].status == FindingStatus.WARNING
    assert findings['kyphosis'].status == FindingStatus.GOOD


def test_changing_view_discards_landmarks(blank_image, paint_marker):
    image = blank_image()
    paint_marker(image, 100, 100)
    session = AnalysisSession()
    session.load_image(image)
    asyncio.run(session.analyze())
    generation = session.generation

    session.set_view_type(ViewType.FOOT_TOP)

    assert session.landmarks == []
    assert session.findings == {}
    assert session.generation == generation + 1
    assert session.image is not None


def test_wizard_walks_all_views_and_keeps_results(blank_image):
    session = AnalysisSession()
    visited = [session.view_type]
    while True:
        session.load_image(blank_image())
        asyncio.run(session.analyze())
        nxt = session.next_view()
        if nxt is None:
            break
        assert session.image is None
        visited.append(nxt)

    assert visited == [ViewType.FRONT, ViewType.SIDE, ViewType.FOOT_TOP, ViewType.FOOT_BACK]
    assert set(session.results_by_view) == set(visited)
