"""
Character connections: who shares a scene with whom.

Each pair is reported once, under whichever character speaks first in the
script, so the result reads as an undirected graph in adjacency-list form.
"""
from __future__ import annotations

from typing import Iterable

from beatkit.screenplay.fountain import Line, LineType


def scene_characters(lines: Iterable[Line]) -> list[list[str]]:
    """Speaking characters per scene, in order of first cue.

    Scenes start at each heading; cues before the first heading form a
    scene of their own.
    """
    scenes: list[list[str]] = [[]]
    for line in lines:
        if line.type is LineType.HEADING:
            scenes.append([])
            continue
        name = line.character_name()
        if name and name not in scenes[-1]:
            scenes[-1].append(name)
    return [names for names in scenes if names]


def connections(lines: Iterable[Line]) -> dict[str, list[str]]:
    scenes = scene_characters(lines)

    graph: dict[str, list[str]] = {}
    for names in scenes:
        for name in names:
            graph.setdefault(name, [])

    for character in graph:
        for names in scenes:
            if character not in names:
                continue
            for other in names:
                if other == character or other in graph[character]:
                    continue
                if character in graph[other]:
                    continue
                graph[character].append(other)
    return graph
