#File: app.py
"""
CitySafe - Main Dash Application

Serves the zone hazard dashboard and the JSON API used by map clients.

The application is structured as follows:
- Imports: Loads libraries and backend services.
- create_app(): Builds the Dash app, registers the JSON routes on its Flask
  server, and maps backend exceptions to HTTP responses.
- App Layout: A zone table refreshed on an interval.
- Callbacks: Recompute the zone risk table.

JSON endpoints:
    GET /api/risk          zone FeatureCollection with risk properties
    GET /api/aqi-today     simulated AQI per zone
    GET /api/aqi?lat&lon   AQI at the nearest provider station
    GET /api/risk-debug    first upstream record, for schema discovery
    GET /api/cache-status  provider cache diagnostics
"""

# --- Core Libraries ---
import logging
import os

import dash
from dash import dcc, html
from dash.dependencies import Input, Output
from flask import jsonify, request

from src.config_loader import get_setting
from src.exceptions import (
    APIError, ConfigError, UnconfiguredProviderError, UpstreamEmptyError, ValidationError,
)
from src.health_rules.info import AQI_SCALE, get_aqi_info
from src.risk.zones import load_zone_baselines, load_zone_collection
from src.services import (
    AirQualityService, build_simulator, get_current_aqi_listing,
    get_zone_risk_collection, parse_coordinate,
)

log = logging.getLogger(__name__)


# --- Error Mapping ---
def _error_response(status_code, error, details=None):
    body = {"error": error}
    if details:
        body["details"] = details
    return jsonify(body), status_code


def register_error_handlers(server):
    @server.errorhandler(ValidationError)
    def handle_validation_error(e):
        log.info(f"Rejected request: {e}")
        return _error_response(400, "lat & lon required", str(e))

    @server.errorhandler(UnconfiguredProviderError)
    def handle_unconfigured(e):
        return jsonify({"error": str(e), "note": "Set OGD_API_KEY env var to enable debug"}), 200

    @server.errorhandler(UpstreamEmptyError)
    def handle_upstream_empty(e):
        log.warning(f"Upstream returned no usable data: {e}")
        return _error_response(502, e.message)

    @server.errorhandler(APIError)
    def handle_upstream_unavailable(e):
        log.error(f"Upstream provider failure: {e}")
        return _error_response(500, "failed to fetch external AQI", str(e))

    @server.errorhandler(ConfigError)
    def handle_config_error(e):
        log.error(f"Configuration error while serving request: {e}")
        return _error_response(500, "server misconfigured", str(e))


# --- JSON Routes ---
def register_api_routes(server, state):
    @server.route('/api/risk', methods=['GET'])
    def zone_risk():
        return jsonify(get_zone_risk_collection(state["zones"], state["baselines"], state["simulator"]))

    @server.route('/api/aqi-today', methods=['GET'])
    def aqi_today():
        return jsonify(get_current_aqi_listing(state["zones"], state["simulator"]))

    @server.route('/api/aqi', methods=['GET'])
    def point_aqi():
        lat = parse_coordinate("lat", request.args.get("lat"))
        lon = parse_coordinate("lon", request.args.get("lon"))
        return jsonify(state["air_quality"].get_point_aqi(lat, lon))

    @server.route('/api/risk-debug', methods=['GET'])
    def risk_debug():
        return jsonify(state["air_quality"].get_provider_debug())

    @server.route('/api/cache-status', methods=['GET'])
    def cache_status():
        return jsonify(state["air_quality"].cache_status())


# --- Layout Helpers ---
def build_zone_table(collection):
    header = html.Tr([html.Th(h) for h in ("Zone", "AQI", "Category", "Crime", "Traffic", "Flood", "Risk")])
    rows = []
    for feature in sorted(collection["features"], key=lambda f: f["properties"]["risk"], reverse=True):
        props = feature["properties"]
        components = props["components"]
        info = get_aqi_info(props["aqi"]) or {}
        rows.append(html.Tr([
            html.Td(props.get("name") or props.get("zone_id")),
            html.Td(props["aqi"], style={'backgroundColor': f"{info.get('color', '#DDDDDD')}40"}),
            html.Td(props["aqi_category"]),
            html.Td(f"{components['crime']:.2f}"),
            html.Td(f"{components['traffic']:.2f}"),
            html.Td(f"{components['flood']:.2f}"),
            html.Td(f"{props['risk']:.3f}", className="risk-score"),
        ]))
    return html.Table([html.Thead(header), html.Tbody(rows)], className="zone-risk-table")


def build_layout(refresh_seconds):
    return html.Div(className="app-shell", children=[
        html.Div(className="page-header", children=[html.H1("CitySafe Zone Hazard Map")]),
        html.Div(className="main-content-grid", children=[
            html.Div(className="widget-card", id="zone-risk-card", children=[
                html.H3("Zone Risk (crime, traffic, flood, air quality)"),
                html.Div(id='zone-risk-table-content'),
                html.P(id='zone-risk-timestamp', className="timestamp-note"),
            ]),
            html.Div(className="widget-card", id="aqi-scale-card", children=[
                html.H3("AQI Categories (US EPA)"),
                html.Div(className="aqi-scale-container", children=[
                    html.Div(
                        className="aqi-category-card",
                        style={'borderColor': category['color'], 'backgroundColor': f"{category['color']}20"},
                        children=[
                            html.Strong(f"{category['level']} ", className="aqi-category-level"),
                            html.Span(f"({category['range']})", className="aqi-category-range"),
                            html.P(category['implications'], className="aqi-category-implications"),
                        ]
                    ) for category in AQI_SCALE
                ]),
            ]),
        ]),
        dcc.Interval(id='zone-refresh-interval', interval=refresh_seconds * 1000, n_intervals=0),
    ])


# --- App Factory ---
def create_app(air_quality=None, zones=None, baselines=None, simulator=None):
    """
    Builds the Dash app and its Flask routes.

    All collaborators can be injected for tests; by default zones and
    baselines are loaded from disk/config and a fresh AirQualityService
    (with its own provider cache) is created.
    """
    state = {
        "zones": zones if zones is not None else load_zone_collection(),
        "baselines": baselines if baselines is not None else load_zone_baselines(),
        "simulator": simulator or build_simulator(),
        "air_quality": air_quality or AirQualityService(),
    }

    dash_app = dash.Dash(__name__)
    dash_app.title = "CitySafe"
    dash_app.layout = build_layout(get_setting('server', 'refresh_interval_seconds', default=60))

    register_error_handlers(dash_app.server)
    register_api_routes(dash_app.server, state)

    @dash_app.callback(
        [Output('zone-risk-table-content', 'children'), Output('zone-risk-timestamp', 'children')],
        [Input('zone-refresh-interval', 'n_intervals')]
    )
    def update_zone_table(_n_intervals):
        collection = get_zone_risk_collection(state["zones"], state["baselines"], state["simulator"])
        if not collection["features"]:
            return html.P("No zones loaded."), ""
        return build_zone_table(collection), f"Updated {collection['timestamp']}"

    return dash_app


app = create_app()
server = app.server

if __name__ == '__main__':
    port = int(os.getenv('PORT') or get_setting('server', 'port', default=4000))
    log.info(f"Backend listening on {port}")
    app.run(debug=False, host='0.0.0.0', port=port)
