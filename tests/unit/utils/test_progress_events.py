from lineuplens.utils.progress import ProgressEvent, ProgressEvents


def test_subscribe_emit_unsubscribe():
    events = ProgressEvents()
    seen = []
    unsubscribe = events.subscribe(seen.append)
    events.status('catalog', 'Loading lineup...')
    events.items('library', 'Loading liked songs', 50, 200)
    unsubscribe()
    events.status('match', 'ignored')
    assert [e.stage for e in seen] == ['catalog', 'library']
    assert seen[0].percent is None
    assert seen[1].percent == 25


def test_broken_subscriber_does_not_stop_others():
    events = ProgressEvents()
    seen = []

    def broken(event):
        raise RuntimeError('boom')

    events.subscribe(broken)
    events.subscribe(seen.append)
    events.emit(ProgressEvent('auth', 'Logging in'))
    assert len(seen) == 1
