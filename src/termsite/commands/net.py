# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Network and API tools.

Upstream failures (ApiError or a requests exception) become a single
failure line here. Anything else propagates to the interpreter.
"""

from __future__ import annotations

import random
import socket
import time

from ..api import UPSTREAM_ERRORS
from ..registry import CommandContext, HandlerResult, Privilege
from . import REGISTRY

DEFAULT_PING_HOST = "1.1.1.1"
PING_PACKETS = 4

# DNS-over-HTTPS answers carry numeric record types
DNS_TYPES = {1: "A", 2: "NS", 5: "CNAME", 15: "MX", 16: "TXT", 28: "AAAA"}


@REGISTRY.command(
    "ai",
    "net",
    privilege=Privilege.AUTHENTICATED,
    usage="ai <your_question>",
    summary="Ask the AI assistant",
    denied="Permission denied. AI features require login.",
)
def ai(ctx: CommandContext) -> HandlerResult:
    prompt = ctx.rest()
    if not prompt:
        return ["Usage: ai <your_question>"]
    ctx.terminal.notify("Thinking...", "info")
    try:
        response = ctx.api.ai(prompt)
    except UPSTREAM_ERRORS as e:
        return [f"AI Error: {e}"]
    return response.split("\n") if response else ["AI returned no response."]


@REGISTRY.command("curl", "net", usage="curl <url>", summary="Fetch a URL")
def curl(ctx: CommandContext) -> HandlerResult:
    url = ctx.arg(0)
    if not url:
        return ["Usage: curl <url>"]
    try:
        body = ctx.api.curl(url)
    except UPSTREAM_ERRORS:
        return ["curl: (6) Could not resolve host."]
    return body.split("\n")


@REGISTRY.command("dig", "net", usage="dig <domain>", summary="DNS lookup")
def dig(ctx: CommandContext) -> HandlerResult:
    domain = ctx.arg(0)
    if not domain:
        return ["Usage: dig <domain>"]
    not_found = [f"dig: couldn't get address for '{domain}': not found"]
    try:
        data = ctx.api.dns(domain)
    except UPSTREAM_ERRORS:
        return not_found

    answers = data.get("Answer")
    if not answers:
        return not_found

    output = [";; QUESTION SECTION:", f";{domain}.\t\t\tIN\tA", "",
              ";; ANSWER SECTION:"]
    for record in answers:
        rtype = record.get("type")
        rtype = DNS_TYPES.get(rtype, str(rtype))
        output.append(
            f"{record.get('name', ''):<24} {str(record.get('TTL', '')):<8} "
            f"IN {rtype:<8} {record.get('data', '')}"
        )
    return output


@REGISTRY.command(
    "github", "net", usage="github <username>", summary="GitHub user profile"
)
def github(ctx: CommandContext) -> HandlerResult:
    username = ctx.arg(0)
    if not username:
        return ["Usage: github <username>"]
    try:
        data = ctx.api.github_user(username)
    except UPSTREAM_ERRORS:
        return [f"User '{username}' not found."]
    return [
        f"User: {data.get('name') or username}",
        f"Bio: {data.get('bio') or 'N/A'}",
        f"Company: {data.get('company') or 'N/A'}",
        f"Public Repos: {data.get('public_repos')}",
        f"Followers: {data.get('followers')}",
    ]


@REGISTRY.command(
    "npm", "net", usage="npm <package-name>", summary="npm package info"
)
def npm(ctx: CommandContext) -> HandlerResult:
    package = ctx.arg(0)
    if not package:
        return ["Usage: npm <package-name>"]
    try:
        data = ctx.api.npm_package(package)
    except UPSTREAM_ERRORS:
        return [f"Package '{package}' not found."]
    latest = (data.get("dist-tags") or {}).get("latest", "unknown")
    return [
        f"Package: {data.get('name', package)}",
        f"Latest Version: {latest}",
        f"Description: {data.get('description') or 'N/A'}",
    ]


@REGISTRY.command(
    "shorten",
    "net",
    privilege=Privilege.AUTHENTICATED,
    usage="shorten <url>",
    summary="Create a short link",
    denied="Permission denied. Please log in to shorten URLs.",
)
def shorten(ctx: CommandContext) -> HandlerResult:
    url = ctx.arg(0)
    if not url:
        return ["Usage: shorten <url>"]
    try:
        return [ctx.api.shorten(url)]
    except UPSTREAM_ERRORS as e:
        return [str(e) or "Failed to shorten URL."]


@REGISTRY.command(
    "unshorten",
    "net",
    privilege=Privilege.AUTHENTICATED,
    usage="unshorten <short-url>",
    summary="Resolve a short link",
    denied="Permission denied. Please log in to resolve short URLs.",
)
def unshorten(ctx: CommandContext) -> HandlerResult:
    url = ctx.arg(0)
    if not url:
        return ["Usage: unshorten <short-url>"]
    key = url.split("/")[-1]
    if not key:
        return ["Invalid short URL."]
    try:
        long_url = ctx.api.unshorten(key)
    except UPSTREAM_ERRORS:
        return ["Failed to resolve URL."]
    return [long_url or "Short URL not found or expired."]


@REGISTRY.command(
    "weather", "net", usage="weather [city]", summary="Weather report"
)
def weather(ctx: CommandContext) -> HandlerResult:
    city = ctx.rest() or "beijing"
    try:
        report = ctx.api.weather(city)
    except UPSTREAM_ERRORS:
        return [f"weather: could not fetch weather for '{city}'."]
    return report.rstrip("\n").split("\n")


@REGISTRY.command(
    "isdown", "net", usage="isdown <url>",
    summary="Is a site down for everyone?",
)
def isdown(ctx: CommandContext) -> HandlerResult:
    url = ctx.arg(0)
    if not url:
        return ["Usage: isdown <url>"]
    try:
        status = ctx.api.isdown(url).get("status_code")
    except UPSTREAM_ERRORS:
        status = None
    if status == 1:
        return [f"It's just you. {url} is up."]
    if status == 2:
        return [f"It's not just you! {url} looks down from here."]
    return [f"Couldn't determine status for {url}."]


@REGISTRY.command(
    "geoip", "net", usage="geoip [ip]", summary="Locate an IP address"
)
def geoip(ctx: CommandContext) -> HandlerResult:
    ip = ctx.arg(0)
    try:
        data = ctx.api.geoip(ip)
    except UPSTREAM_ERRORS:
        return [f"geoip: lookup failed for '{ip or 'your address'}'."]
    country = data.get("country_name") or data.get("country") or "N/A"
    continent = data.get("continent_code") or data.get("continent") or "N/A"
    return [
        f"City: {data.get('city') or 'N/A'}",
        f"Country: {country}",
        f"Continent: {continent}",
    ]


@REGISTRY.command(
    "ping", "net", usage="ping [host]", summary="Simulated ICMP echo"
)
def ping(ctx: CommandContext) -> HandlerResult:
    host = ctx.arg(0) or DEFAULT_PING_HOST
    delay = float(ctx.config.system.get("ping_delay", 0.8) or 0)

    output = [f"PING {host} ({host}): 56 data bytes"]
    received = 0
    for seq in range(1, PING_PACKETS + 1):
        if delay:
            time.sleep(delay)
        if random.random() > 0.1:
            received += 1
            latency = random.random() * 40 + 10
            output.append(
                f"64 bytes from {host}: icmp_seq={seq} ttl=55 "
                f"time={latency:.3f} ms"
            )

    loss = (PING_PACKETS - received) * 100 // PING_PACKETS
    output += [
        "",
        f"--- {host} ping statistics ---",
        f"{PING_PACKETS} packets transmitted, {received} packets received, "
        f"{loss}% packet loss",
    ]
    return output


@REGISTRY.command(
    "netstat", "net", usage="netstat", summary="Show network connections"
)
def netstat(ctx: CommandContext) -> HandlerResult:
    host = ctx.config.system.get("hostname") or socket.gethostname()
    header = (
        "Proto Recv-Q Send-Q Local Address           "
        "Foreign Address         State"
    )
    rows = [
        ("api.github.com:https", "ESTABLISHED"),
        ("api.bilibili.com:https", "ESTABLISHED"),
        ("music.api.provider:https", "TIME_WAIT"),
    ]
    return [
        "Active Internet connections (w/o servers)",
        ctx.color(header, "accent"),
        *(
            f"tcp        0      0 {host + ':https':<23} {remote:<23} {state}"
            for remote, state in rows
        ),
    ]
