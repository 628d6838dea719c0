"""
FastAPI server for the arbitrage dashboard.

Serves a single configuration-driven page, a small JSON API to control
the scanner and read its results, and a websocket that streams scanner
events to connected browsers.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp
import orjson
from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, Field

from dexarb import __version__
from dexarb.config.constants import (
    DEFAULT_TABLE_LIMIT,
    HEALTH_CHECK_TIMEOUT_S,
    HEALTHY_API_RATIO,
    MIN_UPDATE_INTERVAL_MS,
    USER_AGENT,
)
from dexarb.config.settings import Settings, get_settings
from dexarb.core.event_bus import Event, EventBus, EventType
from dexarb.core.types import PriceSource, VenueConfig
from dexarb.engine.scanner import OpportunityScanner, build_price_source
from dexarb.telemetry.export import build_export, default_export_filename, dumps_export
from dexarb.telemetry.metrics import MetricsCollector
from dexarb.utils.time import utc_now_iso


logger = logging.getLogger(__name__)


@dataclass
class DashboardState:
    """Process-wide dashboard state."""

    scanner: OpportunityScanner | None = None
    clients: list[WebSocket] = field(default_factory=list)


# Global state
state = DashboardState()


class SettingsUpdate(BaseModel):
    """Fields the dashboard may change while running."""

    min_profit_threshold_pct: float | None = Field(default=None, ge=-100.0, le=100.0)
    min_liquidity: float | None = Field(default=None, ge=0.0)
    update_interval_ms: int | None = Field(default=None, ge=MIN_UPDATE_INTERVAL_MS)


# =============================================================================
# Websocket Broadcast
# =============================================================================


async def broadcast_event(event: Event[Any]) -> None:
    """Send a scanner event to every connected browser."""
    if not state.clients:
        return

    message = orjson.dumps(
        {"type": event.type.name.lower(), "data": event.payload, "timestamp_us": event.timestamp_us}
    ).decode()

    disconnected = []
    for client in state.clients:
        try:
            await client.send_text(message)
        except Exception as e:
            logger.debug("Dropping websocket client: %s", e)
            disconnected.append(client)
    for client in disconnected:
        if client in state.clients:
            state.clients.remove(client)


def _subscribe_all(event_bus: EventBus) -> None:
    for event_type in EventType:
        event_bus.subscribe(event_type, broadcast_event)


# =============================================================================
# Health
# =============================================================================


async def check_venues(
    venues: list[VenueConfig],
    timeout_s: float = HEALTH_CHECK_TIMEOUT_S,
) -> dict[str, bool]:
    """
    Send a HEAD request to each venue's price API.

    Returns:
        Venue key -> reachable. Venues without a URL are reported down.
    """
    timeout = aiohttp.ClientTimeout(total=timeout_s)

    async with aiohttp.ClientSession(timeout=timeout, headers={"User-Agent": USER_AGENT}) as session:

        async def reachable(venue: VenueConfig) -> bool:
            if not venue.price_url:
                return False
            try:
                async with session.head(venue.price_url, allow_redirects=True) as response:
                    return response.status < 500
            except (aiohttp.ClientError, TimeoutError) as e:
                logger.debug("Health check %s failed: %s", venue.key, e)
                return False

        results = await asyncio.gather(*(reachable(v) for v in venues))

    return {venue.key: ok for venue, ok in zip(venues, results)}


def classify_health(apis: dict[str, bool]) -> str:
    """healthy when at least the configured share of APIs answer."""
    if not apis:
        return "healthy"
    ratio = sum(apis.values()) / len(apis)
    return "healthy" if ratio >= HEALTHY_API_RATIO else "degraded"


# =============================================================================
# App Factory
# =============================================================================


def _require_scanner() -> OpportunityScanner:
    if state.scanner is None:
        raise RuntimeError("Dashboard not initialized")
    return state.scanner


def create_app(
    settings: Settings | None = None,
    source: PriceSource | None = None,
) -> FastAPI:
    """
    Build the dashboard application.

    Args:
        settings: Settings to use instead of the environment.
        source: Price source to use instead of the configured one.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active = settings or get_settings()
        event_bus = EventBus()
        _subscribe_all(event_bus)
        state.scanner = OpportunityScanner(
            active,
            source or build_price_source(active),
            event_bus=event_bus,
            metrics=MetricsCollector(),
        )
        logger.info("Dashboard ready: %d venues", len(active.enabled_venues))
        yield
        await state.scanner.close()
        state.scanner = None
        state.clients.clear()

    app = FastAPI(title="DEX Arbitrage Scanner", version=__version__, lifespan=lifespan)
    app.get("/", response_class=HTMLResponse)(get_dashboard)
    app.post("/api/start")(start_scanner)
    app.post("/api/stop")(stop_scanner)
    app.get("/api/status")(get_status)
    app.get("/api/opportunities")(get_opportunities)
    app.get("/api/analytics")(get_analytics)
    app.get("/api/export")(get_export)
    app.get("/api/settings")(read_settings)
    app.put("/api/settings")(update_settings)
    app.get("/api/health")(get_health)
    app.websocket("/ws")(websocket_endpoint)
    return app


# =============================================================================
# Endpoints
# =============================================================================


async def get_dashboard() -> HTMLResponse:
    return HTMLResponse(content=DASHBOARD_HTML)


async def start_scanner() -> dict[str, Any]:
    scanner = _require_scanner()
    if scanner.is_running:
        return {"status": "already_running"}

    scanner.start()
    logger.info("Scanner started from dashboard")
    return {"status": "started"}


async def stop_scanner() -> dict[str, Any]:
    scanner = _require_scanner()
    if not scanner.is_running:
        return {"status": "not_running"}

    await scanner.stop()
    return {"status": "stopped"}


async def get_status() -> dict[str, Any]:
    return _require_scanner().status()


async def get_opportunities(
    limit: int = Query(default=DEFAULT_TABLE_LIMIT, ge=1, le=1000),
    viable_only: bool = False,
) -> dict[str, Any]:
    history = _require_scanner().history
    items = history.recent(limit=limit, viable_only=viable_only)
    return {
        "total": len(history),
        "success_rate": history.success_rate,
        "opportunities": [o.to_dict() for o in items],
    }


async def get_analytics() -> dict[str, Any]:
    return _require_scanner().analytics.to_dict()


async def get_export() -> Response:
    scanner = _require_scanner()
    document = build_export(scanner.history, scanner.analytics, scanner.settings, scanner.metrics)
    return Response(
        content=dumps_export(document),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{default_export_filename()}"'},
    )


def _editable_settings(current: Settings) -> dict[str, Any]:
    return {
        "min_profit_threshold_pct": current.min_profit_threshold_pct,
        "min_liquidity": current.min_liquidity,
        "update_interval_ms": current.update_interval_ms,
    }


async def read_settings() -> dict[str, Any]:
    return _editable_settings(_require_scanner().settings)


async def update_settings(update: SettingsUpdate) -> dict[str, Any]:
    scanner = _require_scanner()
    changes = update.model_dump(exclude_none=True)
    if changes:
        scanner.update_settings(scanner.settings.model_copy(update=changes))
        logger.info("Settings updated: %s", changes)
    return _editable_settings(scanner.settings)


async def get_health() -> JSONResponse:
    scanner = _require_scanner()
    try:
        apis = await check_venues(scanner.settings.venues)
    except Exception as e:
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "timestamp": utc_now_iso(), "error": str(e)},
        )

    metrics = scanner.metrics
    return JSONResponse(
        content={
            "status": classify_health(apis),
            "timestamp": utc_now_iso(),
            "uptime_seconds": metrics.uptime_seconds,
            "version": __version__,
            "apis": {key: "up" if ok else "down" for key, ok in apis.items()},
            "scanner": {
                "running": scanner.is_running,
                "scan_count": scanner.scan_count,
                "opportunities": len(scanner.history),
                "success_rate": scanner.history.success_rate,
            },
            "metrics": metrics.to_dict(),
        }
    )


async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    state.clients.append(websocket)
    scanner = _require_scanner()

    await websocket.send_text(orjson.dumps({"type": "init", "data": scanner.status()}).decode())

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = orjson.loads(data)
            except orjson.JSONDecodeError:
                logger.debug("Ignoring malformed websocket message")
                continue
            if not isinstance(msg, dict):
                continue
            if msg.get("action") == "start":
                await start_scanner()
            elif msg.get("action") == "stop":
                await stop_scanner()
    except WebSocketDisconnect:
        logger.debug("Websocket client disconnected")
    finally:
        if websocket in state.clients:
            state.clients.remove(websocket)


DASHBOARD_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>DEX Arbitrage Scanner</title>
    <style>
        :root {
            --bg: #09090b; --bg2: #18181b; --bg3: #27272a;
            --border: #3f3f46; --text: #fafafa; --text2: #a1a1aa; --text3: #71717a;
            --accent: #3b82f6; --green: #22c55e; --red: #ef4444; --yellow: #eab308;
        }
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { font-family: -apple-system, BlinkMacSystemFont, "Inter", sans-serif; background: var(--bg); color: var(--text); min-height: 100vh; }
        .app { max-width: 1200px; margin: 0 auto; padding: 32px 24px; }

        .header { display: flex; justify-content: space-between; align-items: center; margin-bottom: 20px; flex-wrap: wrap; gap: 16px; }
        .logo { display: flex; align-items: center; gap: 12px; }
        .logo-icon { width: 36px; height: 36px; background: linear-gradient(135deg, var(--accent), #8b5cf6); border-radius: 10px; }
        .logo-text { font-size: 20px; font-weight: 600; }

        .status { display: flex; align-items: center; gap: 8px; padding: 6px 12px; border-radius: 6px; font-size: 13px; font-weight: 500; }
        .status.off { background: rgba(239,68,68,0.1); color: var(--red); }
        .status.on { background: rgba(34,197,94,0.1); color: var(--green); }
        .status-dot { width: 6px; height: 6px; border-radius: 50%; background: currentColor; }
        .status.on .status-dot { animation: pulse 2s infinite; }
        @keyframes pulse { 0%,100% { opacity:1; } 50% { opacity:0.4; } }

        .controls { display: flex; gap: 12px; margin-bottom: 20px; flex-wrap: wrap; align-items: end; }
        .btn { padding: 10px 20px; border: none; border-radius: 8px; font-size: 14px; font-weight: 500; cursor: pointer; }
        .btn-start { background: var(--green); color: white; }
        .btn-start:disabled { background: var(--bg3); color: var(--text3); cursor: not-allowed; }
        .btn-stop, .btn-plain { background: var(--bg3); color: var(--text); border: 1px solid var(--border); }
        .btn-stop:disabled { color: var(--text3); cursor: not-allowed; }
        .field { display: flex; flex-direction: column; gap: 4px; font-size: 11px; color: var(--text3); text-transform: uppercase; }
        .field input { width: 120px; padding: 8px; border-radius: 6px; border: 1px solid var(--border); background: var(--bg2); color: var(--text); }

        .stats { display: grid; grid-template-columns: repeat(5, 1fr); gap: 12px; margin-bottom: 20px; }
        .stat { background: var(--bg2); border: 1px solid var(--border); border-radius: 10px; padding: 16px; }
        .stat-label { font-size: 11px; color: var(--text3); text-transform: uppercase; letter-spacing: 0.05em; margin-bottom: 6px; }
        .stat-value { font-size: 22px; font-weight: 600; font-variant-numeric: tabular-nums; }

        .grid { display: grid; grid-template-columns: 1fr 1fr 1fr; gap: 16px; margin-bottom: 20px; }
        @media (max-width: 900px) { .grid { grid-template-columns: 1fr; } .stats { grid-template-columns: 1fr 1fr; } }

        .card { background: var(--bg2); border: 1px solid var(--border); border-radius: 12px; overflow: hidden; }
        .card-header { padding: 14px 18px; border-bottom: 1px solid var(--border); font-size: 12px; font-weight: 500; color: var(--text2); text-transform: uppercase; letter-spacing: 0.05em; }
        .card-body { max-height: 420px; overflow-y: auto; }

        .row { display: flex; justify-content: space-between; padding: 8px 18px; border-bottom: 1px solid var(--border); font-size: 13px; }
        .row:last-child { border-bottom: none; }
        .badge { padding: 2px 6px; border-radius: 4px; font-size: 11px; }
        .badge.connected { background: rgba(34,197,94,0.2); color: var(--green); }
        .badge.connecting { background: rgba(59,130,246,0.2); color: var(--accent); }
        .badge.error { background: rgba(239,68,68,0.2); color: var(--red); }
        .badge.rate_limited { background: rgba(234,179,8,0.2); color: var(--yellow); }
        .badge.offline { background: var(--bg3); color: var(--text3); }

        table { width: 100%; border-collapse: collapse; font-size: 13px; font-variant-numeric: tabular-nums; }
        th, td { padding: 8px 12px; text-align: left; border-bottom: 1px solid var(--border); }
        th { color: var(--text3); font-size: 11px; text-transform: uppercase; }
        tr.viable { background: rgba(34,197,94,0.05); }
        .pos { color: var(--green); font-weight: 600; }
        .neg { color: var(--text3); }
        .empty { padding: 40px; text-align: center; color: var(--text3); font-size: 13px; }
    </style>
</head>
<body>
    <div class="app">
        <header class="header">
            <div class="logo">
                <div class="logo-icon"></div>
                <span class="logo-text">DEX Arbitrage Scanner</span>
            </div>
            <div class="status off" id="status">
                <span class="status-dot"></span>
                <span id="statusText">Stopped</span>
            </div>
        </header>

        <div class="controls">
            <button class="btn btn-start" id="startBtn" onclick="post('/api/start')">Start</button>
            <button class="btn btn-stop" id="stopBtn" onclick="post('/api/stop')" disabled>Stop</button>
            <button class="btn btn-plain" onclick="window.location='/api/export'">Export</button>
            <label class="field">Min profit %<input id="minProfit" type="number" step="0.01"></label>
            <label class="field">Min liquidity<input id="minLiquidity" type="number" step="100"></label>
            <label class="field">Interval ms<input id="interval" type="number" step="1000" min="1000"></label>
            <button class="btn btn-plain" onclick="saveSettings()">Apply</button>
        </div>

        <div class="stats">
            <div class="stat"><div class="stat-label">Evaluated</div><div class="stat-value" id="total">0</div></div>
            <div class="stat"><div class="stat-label">Viable</div><div class="stat-value" id="viable">0</div></div>
            <div class="stat"><div class="stat-label">Avg Profit</div><div class="stat-value" id="avg">0.00%</div></div>
            <div class="stat"><div class="stat-label">Success Rate</div><div class="stat-value" id="rate">0.0%</div></div>
            <div class="stat"><div class="stat-label">API Calls</div><div class="stat-value" id="calls">0</div></div>
        </div>

        <div class="grid">
            <div class="card"><div class="card-header">Venues</div><div class="card-body" id="venues"></div></div>
            <div class="card"><div class="card-header">Top Pairs</div><div class="card-body" id="pairs"><div class="empty">No data</div></div></div>
            <div class="card"><div class="card-header">Top Exchanges</div><div class="card-body" id="exchanges"><div class="empty">No data</div></div></div>
        </div>

        <div class="card">
            <div class="card-header">Opportunities</div>
            <div class="card-body">
                <table>
                    <thead><tr><th>Time</th><th>Exchange</th><th>Triangle</th><th>Route</th><th>Net %</th><th>Inefficiency %</th><th>Min Liquidity</th></tr></thead>
                    <tbody id="opps"><tr><td colspan="7" class="empty">Start the scanner to detect opportunities</td></tr></tbody>
                </table>
            </div>
        </div>
    </div>

    <script>
        const fmt = (n, d = 2) => Number(n).toFixed(d);
        const time = us => new Date(us / 1000).toLocaleTimeString();

        async function post(url) { await fetch(url, { method: 'POST' }); refreshStatus(); }

        async function saveSettings() {
            const body = {};
            const p = document.getElementById('minProfit').value;
            const l = document.getElementById('minLiquidity').value;
            const i = document.getElementById('interval').value;
            if (p !== '') body.min_profit_threshold_pct = parseFloat(p);
            if (l !== '') body.min_liquidity = parseFloat(l);
            if (i !== '') body.update_interval_ms = parseInt(i, 10);
            const res = await fetch('/api/settings', { method: 'PUT', headers: { 'Content-Type': 'application/json' }, body: JSON.stringify(body) });
            if (res.ok) fillSettings(await res.json());
        }

        function fillSettings(s) {
            document.getElementById('minProfit').value = s.min_profit_threshold_pct;
            document.getElementById('minLiquidity').value = s.min_liquidity;
            document.getElementById('interval').value = s.update_interval_ms;
        }

        function renderStatus(s) {
            const el = document.getElementById('status');
            el.className = 'status ' + (s.running ? 'on' : 'off');
            document.getElementById('statusText').textContent = s.running ? 'Scanning' : 'Stopped';
            document.getElementById('startBtn').disabled = s.running;
            document.getElementById('stopBtn').disabled = !s.running;
            document.getElementById('calls').textContent = s.api_calls;
            document.getElementById('venues').innerHTML = s.venues.map(v =>
                `<div class="row"><span>${v.venue}</span><span class="badge ${v.status}">${v.status}</span></div>`).join('');
        }

        function renderVenue(v) {
            const rows = [...document.querySelectorAll('#venues .row')];
            const row = rows.find(r => r.firstChild.textContent === v.venue);
            if (row) row.lastChild.outerHTML = `<span class="badge ${v.status}">${v.status}</span>`;
        }

        function renderAnalytics(a) {
            document.getElementById('total').textContent = a.total_opportunities;
            document.getElementById('viable').textContent = a.viable_opportunities;
            document.getElementById('avg').textContent = fmt(a.average_profit, 3) + '%';
            document.getElementById('pairs').innerHTML = a.top_pairs.length ? a.top_pairs.map(p =>
                `<div class="row"><span>${p.pair}</span><span>${p.count} · ${fmt(p.avg_profit, 3)}%</span></div>`).join('') : '<div class="empty">No data</div>';
            document.getElementById('exchanges').innerHTML = a.top_exchanges.length ? a.top_exchanges.map(e =>
                `<div class="row"><span>${e.exchange}</span><span>${e.count} · ${fmt(e.avg_profit, 3)}%</span></div>`).join('') : '<div class="empty">No data</div>';
        }

        async function refreshTable() {
            const data = await (await fetch('/api/opportunities?limit=80')).json();
            document.getElementById('rate').textContent = fmt(data.success_rate, 1) + '%';
            document.getElementById('opps').innerHTML = data.opportunities.length ? data.opportunities.map(o =>
                `<tr class="${o.viable ? 'viable' : ''}"><td>${time(o.timestamp_us)}</td><td>${o.exchange}</td><td>${o.pairs}</td>` +
                `<td>${o.route}</td><td class="${o.profit > 0 ? 'pos' : 'neg'}">${fmt(o.profit, 4)}</td>` +
                `<td>${fmt(o.result.cross_rate_inefficiency_percent, 3)}</td><td>$${fmt(o.result.min_liquidity_across_legs, 0)}</td></tr>`).join('')
                : '<tr><td colspan="7" class="empty">No opportunities yet</td></tr>';
        }

        async function refreshStatus() { renderStatus(await (await fetch('/api/status')).json()); }

        function connect() {
            const ws = new WebSocket(`${location.protocol === 'https:' ? 'wss' : 'ws'}://${location.host}/ws`);
            ws.onmessage = e => {
                const msg = JSON.parse(e.data);
                if (msg.type === 'init') renderStatus(msg.data);
                else if (msg.type === 'venue_status') renderVenue(msg.data);
                else if (msg.type === 'scan_complete') { renderAnalytics(msg.data.analytics); refreshTable(); refreshStatus(); }
                else if (msg.type === 'shutdown') refreshStatus();
            };
            ws.onclose = () => setTimeout(connect, 3000);
        }

        refreshStatus();
        fetch('/api/settings').then(r => r.json()).then(fillSettings);
        fetch('/api/analytics').then(r => r.json()).then(renderAnalytics);
        refreshTable();
        connect();
    </script>
</body>
</html>
"""


app = create_app()


def main() -> None:
    """Run the dashboard with uvicorn."""
    import uvicorn

    from dexarb.telemetry.logger import setup_logging

    settings = get_settings()
    async_logger = setup_logging(settings.log_level, settings.log_file)

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║              DEX ARBITRAGE SCANNER - DASHBOARD                ║
╚═══════════════════════════════════════════════════════════════╝

Dashboard: http://{settings.dashboard_host}:{settings.dashboard_port}
Price source: {settings.price_source}
Press Ctrl+C to stop.
    """
    )
    try:
        uvicorn.run(
            "dexarb.dashboard.server:app",
            host=settings.dashboard_host,
            port=settings.dashboard_port,
            reload=False,
            log_level="warning",
        )
    finally:
        async_logger.stop()


if __name__ == "__main__":
    main()
