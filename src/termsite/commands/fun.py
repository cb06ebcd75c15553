# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""Entertainment commands: media search, ASCII art, quotes."""

from __future__ import annotations

import random
import re
from typing import Any

from ..api import UPSTREAM_ERRORS
from ..config import SPECIAL_FULLSCREEN
from ..registry import CommandContext, HandlerResult, Output
from . import REGISTRY

SEARCH_LIMIT = 10
NO_RESULTS = ["Search failed or no results."]

_KEYWORD_TAGS = re.compile(r'<em class="keyword">|</em>')


def artists(song: dict[str, Any]) -> str:
    return "/".join(a.get("name", "") for a in song.get("ar") or [])


def music_search(ctx: CommandContext, query: str) -> list[str]:
    if not query:
        return ["Usage: music search <keywords>"]
    ctx.terminal.notify(f"Searching for: {query}", "info")
    try:
        data = ctx.api.music_search(query)
    except UPSTREAM_ERRORS:
        return NO_RESULTS

    songs = (data.get("result") or {}).get("songs")
    if data.get("code") != 200 or not songs:
        return NO_RESULTS
    return ["Search Results:"] + [
        f"[ID: {ctx.color(str(song.get('id')), 'accent')}]  "
        f"{song.get('name')} - {artists(song)}"
        for song in songs[:SEARCH_LIMIT]
    ]


def music_play(ctx: CommandContext, song_id: str) -> list[str]:
    if not song_id:
        return ["Usage: music play <ID>"]
    unavailable = ["Could not get URL. Song may be VIP or unavailable."]
    ctx.terminal.notify("Fetching song...", "info")
    try:
        entries = ctx.api.music_url(song_id).get("data") or []
        url = entries[0].get("url") if entries else None
        if not url:
            return unavailable
        songs = ctx.api.music_detail(song_id).get("songs") or []
    except UPSTREAM_ERRORS:
        return unavailable

    song = songs[0] if songs else {}
    details = {
        "name": song.get("name") or "Unknown",
        "artist": artists(song) or "Unknown",
    }
    ctx.terminal.set_audio(url, details)
    return [f"Now playing: {details['name']} by {details['artist']}"]


@REGISTRY.command(
    "music", "fun", usage="music <search|play|stop> [query|ID]",
    summary="Search and play music",
)
def music(ctx: CommandContext) -> HandlerResult:
    sub = ctx.arg(0)
    if not sub:
        return ["Usage: music <search|play|stop> [query|ID]"]
    if sub == "search":
        return music_search(ctx, ctx.rest(1))
    if sub == "play":
        return music_play(ctx, ctx.arg(1))
    if sub == "stop":
        ctx.terminal.set_audio(None, None)
        return ["Music stopped."]
    return [f"Unknown command: music {sub}"]


@REGISTRY.command(
    "video", "fun", usage="video search <keywords>",
    summary="Search Bilibili videos",
)
def video(ctx: CommandContext) -> HandlerResult:
    if ctx.arg(0) != "search" or len(ctx.args) < 2:
        return ["Usage: video search <keywords>"]
    query = ctx.rest(1)
    ctx.terminal.notify(f"Searching Bilibili for: {query}", "info")
    try:
        data = ctx.api.video_search(query)
    except UPSTREAM_ERRORS:
        return NO_RESULTS

    result = (data.get("data") or {}).get("result")
    if data.get("code") != 0 or not result:
        return NO_RESULTS

    # The typed search returns videos directly; the combined search nests
    # them under {"type": "video", "data": [...]}
    if all("type" in item and "data" in item for item in result):
        groups = [item["data"] for item in result if item["type"] == "video"]
        videos = groups[0] if groups else []
    else:
        videos = result
    if not videos:
        return ["No videos found."]

    lines = ["Bilibili Video Search Results:"]
    for item in videos[:SEARCH_LIMIT]:
        title = _KEYWORD_TAGS.sub("", item.get("title", ""))
        link = f"https://www.bilibili.com/video/{item.get('bvid')}"
        lines.append(f"[{link}] {title} - by {item.get('author')}")
    return lines


def cow(text: str) -> list[str]:
    return [
        f" {'_' * (len(text) + 2)} ",
        f"< {text} >",
        f" {'-' * (len(text) + 2)} ",
        r"        \   ^__^",
        r"         \  (oo)\_______",
        r"            (__)\       )\/\ ",
        "                ||----w |",
        "                ||     ||",
    ]


@REGISTRY.command(
    "cowsay", "fun", usage="cowsay [text]", summary="A talking cow"
)
def cowsay(ctx: CommandContext) -> HandlerResult:
    return cow(ctx.rest() or "Moo!")


@REGISTRY.command("sl", "fun", usage="sl", summary="Did you mean ls?")
def sl(ctx: CommandContext) -> HandlerResult:
    return cow("All aboard the typo train! Choo choo!")


@REGISTRY.command("fortune", "fun", usage="fortune", summary="A fortune")
def fortune(ctx: CommandContext) -> HandlerResult:
    fortunes = ctx.config.get_path("fun.fortunes") or [
        "Error 404: Fortune not found."
    ]
    return [random.choice(fortunes)]


@REGISTRY.command(
    "hitokoto", "fun", usage="hitokoto", summary="A random quote"
)
def hitokoto(ctx: CommandContext) -> HandlerResult:
    try:
        data = ctx.api.hitokoto()
    except UPSTREAM_ERRORS:
        return ["hitokoto: failed to fetch a quote."]
    return [f"{data.get('hitokoto')}  -- {data.get('from')}"]


@REGISTRY.command(
    "devjoke", "fun", usage="devjoke", summary="A programming joke"
)
def devjoke(ctx: CommandContext) -> HandlerResult:
    try:
        data = ctx.api.devjoke()
    except UPSTREAM_ERRORS:
        return ["devjoke: failed to fetch a joke."]
    if isinstance(data, list):
        data = data[0] if data else {}
    return [data.get("setup", ""), f"=> {data.get('punchline', '')}"]


@REGISTRY.command(
    "neofetch", "fun", usage="neofetch", summary="System information"
)
def neofetch(ctx: CommandContext) -> HandlerResult:
    host = ctx.config.system.get("hostname", "localhost")
    info = [
        ctx.color(f"{ctx.username}@{host}", "user"),
        "",
        "OS: Termsite x86_64",
        "Host: Termsite Workspace",
        "Kernel: SQLite/KV",
        "Shell: termsite-zsh 1.0",
        f"Theme: {ctx.session.theme}",
    ]
    logo = [
        "      .--.         ",
        "     |o_o |        ",
        "     |:_/ |        ",
        "    //   \\ \\       ",
        "   (|     | )      ",
        "  /`\\_   _/`\\      ",
        "  \\___)=(___/      ",
    ]
    return [
        ctx.color(art, "accent") + text for art, text in zip(logo, info)
    ]


@REGISTRY.command(
    "hollywood", "fun", usage="hollywood", summary="Hack the mainframe"
)
def hollywood(ctx: CommandContext) -> HandlerResult:
    return Output(special=SPECIAL_FULLSCREEN)


@REGISTRY.command("about", "fun", usage="about", summary="About this site")
def about(ctx: CommandContext) -> HandlerResult:
    return list(ctx.config.get_path("fun.about") or [])


@REGISTRY.command("banner", "fun", usage="banner", summary="Boot banner")
def banner(ctx: CommandContext) -> HandlerResult:
    return list(ctx.config.system.get("boot_sequence") or [])
