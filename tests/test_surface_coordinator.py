import pytest

from missionmap.errors import SurfaceBusy
from missionmap.services.capture.session import CaptureState, Surface

from conftest import FINISH_DELAY


def test_inline_request_while_primary_draws_is_busy(coordinator, session):
    coordinator.request_draw(Surface.PRIMARY, "Polygon")
    coordinator.pointer_click(Surface.PRIMARY, (0, 0))
    before = (session.state, session.surface, session.geometry_type, session.vertices)

    with pytest.raises(SurfaceBusy) as exc:
        coordinator.request_draw(Surface.INLINE, "Point")

    assert exc.value.active is Surface.PRIMARY
    assert (session.state, session.surface, session.geometry_type, session.vertices) == before
    assert coordinator.is_busy(Surface.INLINE)
    assert not coordinator.is_busy(Surface.PRIMARY)


def test_cursors_follow_active_surface(coordinator, surfaces):
    coordinator.request_draw(Surface.INLINE, "Polygon")
    assert surfaces[Surface.INLINE].cursor is True
    assert surfaces[Surface.PRIMARY].cursor is False

    coordinator.cancel(Surface.INLINE)
    assert surfaces[Surface.INLINE].cursor is False


def test_cancel_on_inactive_surface_is_noop(coordinator, session):
    coordinator.request_draw(Surface.INLINE, "Polygon")
    coordinator.pointer_click(Surface.INLINE, (0, 0))

    assert coordinator.cancel(Surface.PRIMARY) is False
    assert session.state is CaptureState.DRAWING_INLINE
    assert session.vertices == ((0.0, 0.0),)

    assert coordinator.cancel(Surface.INLINE) is True
    assert session.state is CaptureState.IDLE


def test_primary_drawing_hides_form_until_capture(coordinator):
    coordinator.open_form()
    coordinator.request_draw(Surface.PRIMARY, "Point")
    assert coordinator.form_visible is False

    coordinator.pointer_click(Surface.PRIMARY, (32.08, 34.78))
    assert coordinator.form_visible is True


def test_primary_cancel_shows_form_again(coordinator):
    coordinator.open_form()
    coordinator.request_draw(Surface.PRIMARY, "Polygon")
    coordinator.cancel(Surface.PRIMARY)
    assert coordinator.form_visible is True


def test_inline_drawing_keeps_form_visible(coordinator):
    coordinator.open_form()
    coordinator.request_draw(Surface.INLINE, "Polygon")
    assert coordinator.form_visible is True


def test_capture_notifies_requesting_listener_once(coordinator, surfaces):
    received = []
    coordinator.request_draw(Surface.INLINE, "Polygon", received.append)
    for pt in [(0, 0), (0, 1), (1, 1)]:
        coordinator.pointer_click(Surface.INLINE, pt)

    captured = coordinator.finish(Surface.INLINE)

    assert received == [captured]
    assert coordinator.active_surface is None
    assert not any(view.cursor for view in surfaces.values())
    # 追加の完成操作は誰にも通知されない
    assert coordinator.finish(Surface.INLINE) is None
    assert received == [captured]


def test_input_from_inactive_surface_is_ignored(coordinator, session):
    coordinator.request_draw(Surface.INLINE, "Point")
    assert coordinator.pointer_click(Surface.PRIMARY, (5, 5)) is None
    assert session.state is CaptureState.DRAWING_INLINE


def test_double_activate_finishes_after_poll(coordinator, clock):
    received = []
    coordinator.request_draw(Surface.PRIMARY, "Polygon", received.append)
    for pt in [(0, 0), (0, 1), (1, 1)]:
        coordinator.pointer_click(Surface.PRIMARY, pt)
    coordinator.pointer_click(Surface.PRIMARY, (1, 1))
    coordinator.double_activate(Surface.PRIMARY, (1, 1))

    assert coordinator.poll() is None
    clock.advance(FINISH_DELAY)
    captured = coordinator.poll()

    assert received == [captured]
    assert captured.coordinates == [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0)]


def test_shape_selection_suppressed_while_primary_draws(coordinator):
    assert coordinator.select_shape("g1") == "g1"

    coordinator.request_draw(Surface.PRIMARY, "Point")
    assert coordinator.select_shape("g1") is None

    coordinator.cancel(Surface.PRIMARY)
    coordinator.request_draw(Surface.INLINE, "Point")
    assert coordinator.select_shape("g1") == "g1"


def test_draft_preview_goes_to_drawing_surface_only(coordinator, surfaces):
    coordinator.request_draw(Surface.INLINE, "Polygon")
    coordinator.pointer_click(Surface.INLINE, (0, 0))
    coordinator.pointer_click(Surface.INLINE, (0, 1))

    assert surfaces[Surface.INLINE].drafts == [
        ("Polygon", ((0.0, 0.0),)),
        ("Polygon", ((0.0, 0.0), (0.0, 1.0))),
    ]
    assert surfaces[Surface.PRIMARY].drafts == []


def test_detach_active_surface_cancels_drawing(coordinator, session, surfaces):
    coordinator.open_form()
    coordinator.request_draw(Surface.PRIMARY, "Polygon")
    coordinator.pointer_click(Surface.PRIMARY, (0, 0))
    view = surfaces[Surface.PRIMARY]

    coordinator.detach(Surface.PRIMARY)

    assert session.state is CaptureState.IDLE
    assert coordinator.active_surface is None
    assert view.cursor is False
    assert coordinator.form_visible is True
    # 切り離した面にはもう何も送られない
    coordinator.request_draw(Surface.PRIMARY, "Point")
    coordinator.pointer_click(Surface.PRIMARY, (1, 1))
    assert view.drafts[-1] == ("Polygon", ())


def test_detach_idle_surface_keeps_other_drawing(coordinator, session):
    coordinator.request_draw(Surface.INLINE, "Polygon")
    coordinator.detach(Surface.PRIMARY)
    assert session.state is CaptureState.DRAWING_INLINE


def test_unknown_type_on_primary_keeps_form_visible(coordinator, session, surfaces):
    coordinator.open_form()

    with pytest.raises(ValueError):
        coordinator.request_draw(Surface.PRIMARY, "LineString")

    assert coordinator.form_visible is True
    assert session.state is CaptureState.IDLE
    assert surfaces[Surface.PRIMARY].cursor is False

    coordinator.request_draw(Surface.INLINE, "Point")
    assert coordinator.active_surface is Surface.INLINE


def test_abandon_resets_everything(coordinator, session, surfaces):
    coordinator.open_form()
    coordinator.request_draw(Surface.PRIMARY, "Polygon")
    coordinator.pointer_click(Surface.PRIMARY, (0, 0))

    coordinator.abandon()

    assert session.state is CaptureState.IDLE
    assert coordinator.form_visible is True
    assert not surfaces[Surface.PRIMARY].cursor
