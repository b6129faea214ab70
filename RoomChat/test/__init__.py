"""
Tests for the RoomChat terminal client.
"""
