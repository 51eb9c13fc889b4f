import threading

from wfmserver.server import SnapshotWatcher


def test_snapshot_watcher_follows_state(dispatcher):
    state = dispatcher.state
    stop_event = threading.Event()
    watcher = SnapshotWatcher(poll_interval=0.01)
    thread = threading.Thread(target=watcher, args=(state, stop_event), daemon=True)
    thread.start()

    dispatcher.dispatch_line("C1:ON")
    dispatcher.dispatch_line("START")
    dispatcher.dispatch_line("DEPTH 4096")
    for _ in range(200):
        if not state.acquisition.memory_depth_changed:
            break
        stop_event.wait(0.01)

    stop_event.set()
    thread.join(5)

    assert not thread.is_alive()
    assert not state.acquisition.memory_depth_changed
    assert state.snapshot.memory_depth == 4096


def test_snapshot_watcher_stops_promptly(state):
    stop_event = threading.Event()
    stop_event.set()
    # returns without polling once the stop token is set
    SnapshotWatcher(poll_interval=10)(state, stop_event)
