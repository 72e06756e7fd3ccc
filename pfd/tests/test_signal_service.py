import pytest

from pfd.models.signal_word import SignalWord, SignStatusMatrix, bits_to_word, encode
from pfd.services.signal_service import SignalService


def test_subscribers_called_in_order_before_publish_returns():
    service = SignalService(clock=lambda: 1.0)
    calls = []
    service.subscribe('elec', lambda v: calls.append(('first', v)))
    service.subscribe('elec', lambda v: calls.append(('second', v)))
    service.publish('elec', 1)
    assert calls == [('first', 1.0), ('second', 1.0)]


def test_when_changed_filters_repeats():
    service = SignalService()
    changed, every = [], []
    service.subscribe('elec', changed.append)
    service.subscribe('elec', every.append, when_changed=False)
    for value in (1.0, 1.0, 0.0):
        service.publish('elec', value)
    assert changed == [1.0, 0.0]
    assert every == [1.0, 1.0, 0.0]


def test_unsubscribe_is_idempotent():
    service = SignalService()
    calls = []
    sub = service.subscribe('elec', calls.append)
    sub.unsubscribe()
    sub.unsubscribe()
    assert not sub.active
    service.publish('elec', 1.0)
    assert calls == []


def test_latest_value_and_timestamp():
    service = SignalService(clock=lambda: 12.5)
    assert service.get_latest_signal('speed') == (None, None)
    service.publish('speed', 3.0)
    assert service.get_latest_signal('speed') == (12.5, 3.0)
    service.publish('speed', 4.0, timestamp=13.0)
    assert service.get_latest_signal('speed') == (13.0, 4.0)
    assert service.get('missing', default=-1.0) == -1.0


def test_snapshot_is_immutable_and_detached():
    service = SignalService()
    service.publish('mda', 500.0)
    snap = service.snapshot(at=2.0)
    service.publish('mda', 700.0)
    assert snap['mda'] == 500.0
    assert snap.time == 2.0
    assert snap.value('absent') == 0.0
    with pytest.raises(TypeError):
        snap['mda'] = 1.0


def test_snapshot_decodes_words():
    service = SignalService()
    service.publish('altitude', encode(10450.0))
    word = service.snapshot().word('altitude')
    assert word == SignalWord(10450.0)
    # absent encoded channels read as an all-zero word
    assert service.snapshot().word('speed').is_failure_warning()


def test_undecodable_word_becomes_no_computed_data():
    service = SignalService()
    service.publish('speed', bits_to_word((0x437A0000 << 32) | 5))
    word = service.snapshot().word('speed')
    assert word.quality is SignStatusMatrix.NO_COMPUTED_DATA
    assert service.decode_failures == 1
    # repeated reads of the same sample reuse the decoded word
    assert service.decode_word('speed').is_no_computed_data()
    service.snapshot().word('speed')
    assert service.decode_failures == 1


def test_each_bad_sample_counted_once():
    service = SignalService()
    bad = bits_to_word((0x437A0000 << 32) | 5)
    service.publish('speed', bad)
    service.publish('speed', bad)
    service.decode_word('speed')
    assert service.decode_failures == 1
    service.publish('speed', bad)
    service.snapshot().word('speed')
    service.snapshot().word('speed')
    assert service.decode_failures == 2


def test_good_sample_replaces_cached_failure():
    service = SignalService()
    service.publish('speed', bits_to_word((0x437A0000 << 32) | 5))
    assert service.decode_word('speed').is_no_computed_data()
    service.publish('speed', encode(250.0))
    assert service.decode_word('speed') == SignalWord(250.0)
    assert service.decode_failures == 1


def test_text_channel_keeps_string():
    service = SignalService()
    service.publish('nav_ident', 'ITLV')
    assert service.get('nav_ident') == 'ITLV'
    assert service.snapshot().value('nav_ident') == 'ITLV'


def test_clear_cache():
    service = SignalService()
    service.publish('elec', 1.0)
    service.clear_cache()
    assert service.get_all() == {}
