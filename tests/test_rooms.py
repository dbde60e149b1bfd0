import pytest

from darkmoon.models import FeedEntry, Session
from darkmoon.services.errors import InvalidJoin, NotJoined, RollInProgress, UnknownSection
from darkmoon.services.rolls import request_roll
from darkmoon.services.rooms import Channel, RoomRegistry, normalize_room_code


def test_room_codes_are_normalized():
    assert normalize_room_code('  moon ') == 'MOON'
    assert normalize_room_code(None) == ''


def test_get_room_creates_once(registry):
    room = registry.get_room('moon')
    assert registry.get_room(' MOON ') is room
    assert room.players == {} and len(room.feed) == 0 and room.rolls == {}
    assert registry.find_room('sun') is None


def test_join_replays_feed_then_announces(registry, channel_factory):
    first = channel_factory()
    registry.join('sid-nova', ' moon ', ' Nova ', first)
    assert first.last_reply('room_joined') == {'roomCode': 'MOON', 'playerName': 'Nova', 'feed': []}
    assert first.subscribed == {'MOON'}

    second = channel_factory()
    session = registry.join('sid-orion', 'MOON', 'Orion', second)
    assert session == Session('sid-orion', 'MOON', 'Orion')
    snapshot = second.last_reply('room_joined')['feed']
    assert [entry['type'] for entry in snapshot] == ['JOINED']
    assert snapshot[0]['playerName'] == 'Nova'

    joined = second.feed('JOINED')
    assert len(joined) == 1 and joined[0]['playerName'] == 'Orion'
    assert registry.get_room('MOON').players == {'sid-nova': 'Nova', 'sid-orion': 'Orion'}


@pytest.mark.parametrize('code,name', [('', 'Nova'), ('MOON', '   '), (None, None)])
def test_join_requires_code_and_name(registry, channel, code, name):
    with pytest.raises(InvalidJoin) as excinfo:
        registry.join('sid-nova', code, name, channel)
    assert excinfo.value.message == 'Room code and player name are required.'
    assert channel.sent == []
    assert registry.session_for('sid-nova').joined is False


def test_leave_is_noop_when_never_joined(registry, channel):
    assert registry.leave('sid-ghost', channel) is None
    assert channel.sent == []


def test_leave_twice(registry, channel_factory):
    registry.join('sid-nova', 'MOON', 'Nova', channel_factory())
    watcher = channel_factory()
    assert registry.leave('sid-nova', watcher).player_name == 'Nova'
    assert registry.leave('sid-nova', watcher) is None
    assert len(watcher.feed('LEFT')) == 1
    assert registry.get_room('MOON').players == {}


def test_leave_keeps_pending_rolls(registry, channel):
    nova = registry.join('sid-nova', 'MOON', 'Nova', channel)
    roll = request_roll(registry, nova, {'section': 'corp', 'diceCount': 2}, channel)
    registry.leave('sid-nova', channel)
    assert registry.get_room('MOON').rolls[roll.id].pending
    assert registry.session_for('sid-nova') == Session('sid-nova')


def test_rejoin_moves_the_connection(registry, channel):
    registry.join('sid-nova', 'MOON', 'Nova', channel)
    session = registry.join('sid-nova', 'SUN', 'Nova', channel)
    assert session.room_code == 'SUN'
    assert registry.get_room('MOON').players == {}
    assert registry.get_room('SUN').players == {'sid-nova': 'Nova'}
    assert [entry['type'] for entry in channel.feed()] == ['JOINED', 'LEFT', 'JOINED']
    assert channel.subscribed == {'SUN'}


def test_reset_announces_without_touching_rolls(registry, channel):
    nova = registry.join('sid-nova', 'MOON', 'Nova', channel)
    roll = request_roll(registry, nova, {'section': 'task', 'diceCounts': {'black': 1}}, channel)
    entry = registry.reset_section(nova, 'task', channel)
    assert entry.to_dict()['section'] == 'task'
    assert channel.feed('RESET')[0]['playerName'] == 'Nova'
    # The pending roll still blocks the section
    assert roll.pending
    with pytest.raises(RollInProgress):
        request_roll(registry, nova, {'section': 'task', 'diceCounts': {'black': 1}}, channel)


def test_reset_validation(registry, channel):
    with pytest.raises(NotJoined):
        registry.reset_section(Session('sid-ghost'), 'task', channel)
    nova = registry.join('sid-nova', 'MOON', 'Nova', channel)
    with pytest.raises(UnknownSection):
        registry.reset_section(nova, 'engine', channel)
    assert channel.feed('RESET') == []


def test_feed_is_bounded_fifo(registry, channel):
    room = registry.get_room('MOON')
    entries = [FeedEntry.create('RESET', f"p{i}", section='task') for i in range(201)]
    for entry in entries:
        registry.append(room, entry, channel)
    assert len(room.feed) == 200
    assert list(room.feed) == entries[1:]
    assert len(channel.feed()) == 201


def test_feed_limit_follows_config(flask_app):
    flask_app.config['FEED_LIMIT'] = 3
    registry = RoomRegistry(flask_app)
    room = registry.get_room('MOON')
    assert room.feed.maxlen == 3


def test_rooms_are_isolated(registry, channel_factory):
    moon = channel_factory()
    sun = channel_factory()
    nova = registry.join('sid-nova', 'MOON', 'Nova', moon)
    registry.join('sid-vega', 'SUN', 'Vega', sun)
    request_roll(registry, nova, {'section': 'corp', 'diceCount': 2}, moon)
    assert registry.get_room('SUN').rolls == {}
    assert [entry['playerName'] for entry in registry.get_room('SUN').feed_snapshot()] == ['Vega']
    assert all(room_code == 'MOON' for room_code, _, _ in moon.broadcasts)


def test_feed_entries_have_unique_ids(registry, channel):
    registry.join('sid-nova', 'MOON', 'Nova', channel)
    registry.join('sid-orion', 'MOON', 'Orion', channel)
    ids = [entry['id'] for entry in channel.feed()]
    assert len(ids) == len(set(ids))
    assert all(isinstance(entry['ts'], int) for entry in channel.feed())


def test_channel_must_implement_every_method():
    class ReplyOnly(Channel):
        def reply(self, event, payload):
            pass

    with pytest.raises(TypeError):
        ReplyOnly()
