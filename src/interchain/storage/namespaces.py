"""
Ledger namespace definitions for storage tables.

Defines table names and schema constants for SQLite storage.
Each namespace represents a logical grouping of related data.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RunNamespace:
    """
    Namespace for build runs.

    One row per correlation label.
    """

    TABLE_NAME: str = "runs"
    """Table name for run storage."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS runs (
            label TEXT PRIMARY KEY,
            test_name TEXT NOT NULL,
            status TEXT NOT NULL,
            created_at REAL NOT NULL
        )
    """
    """SQL to create runs table."""


@dataclass(frozen=True, slots=True)
class ResourceNamespace:
    """
    Namespace for resources created under a label.

    Networks, chain process groups and relayers. A resource stays
    unreleased until teardown confirms its removal.
    """

    TABLE_NAME: str = "resources"
    """Table name for resource storage."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS resources (
            label TEXT NOT NULL,
            kind TEXT NOT NULL,
            name TEXT NOT NULL,
            ref TEXT NOT NULL,
            released INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (label, kind, name)
        )
    """
    """SQL to create resources table."""

    CREATE_INDEX: str = """
        CREATE INDEX IF NOT EXISTS idx_resources_label ON resources(label, released)
    """
    """SQL to create label index."""


@dataclass(frozen=True, slots=True)
class HandshakeNamespace:
    """
    Namespace for confirmed handshake progress.

    One row per (label, path). Overwritten as the link advances.
    """

    TABLE_NAME: str = "handshakes"
    """Table name for handshake storage."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS handshakes (
            label TEXT NOT NULL,
            path_name TEXT NOT NULL,
            state TEXT NOT NULL,
            updated_at REAL NOT NULL,
            PRIMARY KEY (label, path_name)
        )
    """
    """SQL to create handshakes table."""


RUNS = RunNamespace()
RESOURCES = ResourceNamespace()
HANDSHAKES = HandshakeNamespace()
