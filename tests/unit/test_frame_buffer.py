from stream.frame_buffer import LatestFrameBuffer


def test_frame_buffer_drop_replace():
    buf = LatestFrameBuffer()
    assert buf.put(b"first") is False
    # put second before anyone read the first: first is dropped
    assert buf.put(b"second") is True
    assert buf.peek() == b"second"
    assert buf.dropped_count == 1
    assert buf.received_count == 2


def test_frame_buffer_read_frame_is_not_counted_as_dropped():
    buf = LatestFrameBuffer()
    buf.put(b"first")
    buf.peek()
    assert buf.put(b"second") is False


def test_frame_buffer_ready_and_clear():
    buf = LatestFrameBuffer()
    assert buf.empty()
    assert not buf.ready.is_set()
    buf.put(b"frame")
    assert buf.ready.is_set()
    buf.clear()
    assert buf.empty()
    assert not buf.ready.is_set()
