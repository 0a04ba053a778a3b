"""Shared plumbing for MediaBridge components."""
