"""Tests for timers and the keypad latch."""

import jax.numpy as jnp
import pytest
from chip8vm import tick_timers, sound_active, set_key, set_keypad, release_all


def with_timers(state, delay, sound):
    return state.replace(
        delay_timer=jnp.asarray(delay, dtype=jnp.uint8),
        sound_timer=jnp.asarray(sound, dtype=jnp.uint8),
    )


def test_tick_counts_down(fresh_state):
    state = tick_timers(with_timers(fresh_state, 3, 1))
    assert state.delay_timer == 2
    assert state.sound_timer == 0


def test_tick_stops_at_zero(fresh_state):
    state = tick_timers(fresh_state)
    assert state.delay_timer == 0
    assert state.sound_timer == 0


def test_timers_are_independent(fresh_state):
    state = with_timers(fresh_state, 0, 2)
    state = tick_timers(state)
    assert state.delay_timer == 0
    assert state.sound_timer == 1


def test_sound_active(fresh_state):
    assert not sound_active(fresh_state)
    state = with_timers(fresh_state, 0, 1)
    assert sound_active(state)
    assert not sound_active(tick_timers(state))


def test_set_key(fresh_state):
    state = set_key(fresh_state, 0xA, True)
    assert state.keypad[0xA]
    assert state.keypad.sum() == 1

    state = set_key(state, 0xA, False)
    assert not state.keypad.any()


@pytest.mark.parametrize("index", [-1, 16, 100])
def test_set_key_rejects_bad_index(fresh_state, index):
    with pytest.raises(ValueError):
        set_key(fresh_state, index, True)


def test_set_keypad(fresh_state):
    keys = [i % 2 == 0 for i in range(16)]
    state = set_keypad(fresh_state, keys)
    assert state.keypad.tolist() == keys
    assert not release_all(state).keypad.any()


def test_set_keypad_rejects_wrong_shape(fresh_state):
    with pytest.raises(ValueError):
        set_keypad(fresh_state, [True] * 8)
