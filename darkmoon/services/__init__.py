"""Dice room domain services: dice, rolls, reveals and the room registry.

This package contains the room state machine and roll lifecycle. It
knows nothing about Socket.IO; callers hand in a ``Channel`` that can
reply to the requester and broadcast to a room.
"""
