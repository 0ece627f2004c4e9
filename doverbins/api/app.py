"""
Flask API application for bin collection calendar feeds
"""

import logging
import re
from datetime import date
from functools import wraps
from pathlib import Path

from flasgger import Swagger
from flask import Flask, Response, current_app, jsonify, redirect, render_template, request
from pydantic import BaseModel, ValidationError, field_validator

import config
from doverbins.api.db import (
    get_collections,
    get_override_map,
    get_shift_anchors,
    get_subscription_by_token,
)
from doverbins.calendar.feed import calendar_filename, generate_feed
from doverbins.calendar.materializer import FILTER_CATEGORIES
from doverbins.common.logging_utils import setup_logging
from doverbins.common.rate_limit import RateLimiter, get_client_ip, rules_from_config
from doverbins.refresh.db_writer import (
    create_subscription,
    delete_subscription_by_token,
    upsert_collections,
)
from doverbins.scraper.client import (
    CouncilSourceError,
    lookup_addresses,
    scrape_property_collections,
)

PACKAGE_ROOT = Path(__file__).resolve().parent.parent

setup_logging()
logger = logging.getLogger(__name__)

UK_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}[0-9][A-Z0-9]? ?[0-9][A-Z]{2}$", re.IGNORECASE)
UPRN_RE = re.compile(r"^\d{10,12}$")
TOKEN_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
COUNCIL_RETRY_AFTER_SECONDS = 60

app = Flask(
    __name__,
    template_folder=str(PACKAGE_ROOT / "web" / "templates"),
)
app.config["DEBUG"] = config.DEBUG
app.config["RATE_LIMITER"] = RateLimiter(rules_from_config())


# Initialize Swagger
swagger_config = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/api-docs/",
}

swagger_template = {
    "swagger": "2.0",
    "info": {
        "title": "Dover Bins API",
        "description": "Address lookup, subscriptions and iCalendar feeds for Dover District bin collections.",
        "version": "1.0.0",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {},
}

Swagger(app, config=swagger_config, template=swagger_template)


class LookupRequest(BaseModel):
    postcode: str

    @field_validator("postcode")
    @classmethod
    def valid_postcode(cls, value: str) -> str:
        value = " ".join(value.split()).upper()
        if not UK_POSTCODE_RE.match(value):
            raise ValueError("Invalid UK postcode")
        return value


class SubscribeRequest(LookupRequest):
    uprn: str
    address: str

    @field_validator("uprn")
    @classmethod
    def valid_uprn(cls, value: str) -> str:
        value = value.strip()
        if not UPRN_RE.match(value):
            raise ValueError("UPRN must be 10-12 digits")
        return value

    @field_validator("address")
    @classmethod
    def valid_address(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Address is required")
        return value


def _today() -> date:
    return date.today()


def _base_url() -> str:
    return (config.PUBLIC_BASE_URL or request.host_url).rstrip("/")


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    message = first.get("msg", "Invalid request")
    # pydantic prefixes errors raised from validators
    return message.removeprefix("Value error, ")


def _council_unavailable(e: CouncilSourceError):
    logger.warning("Council site unavailable: %s", e)
    response = jsonify(
        {"error": "The council website is not responding. Please try again shortly.", "retryable": True}
    )
    response.status_code = 503
    response.headers["Retry-After"] = str(COUNCIL_RETRY_AFTER_SECONDS)
    return response


def rate_limited(scope: str):
    """
    Decorator applying the configured rate limit for scope to a view.
    Exceeding the limit returns 429 with a Retry-After header.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            limiter = current_app.config["RATE_LIMITER"]
            client_ip = get_client_ip(request.headers, request.remote_addr)
            result = limiter.check(scope, client_ip)
            if not result.allowed:
                retry_after = result.retry_after()
                logger.info("Rate limit exceeded for %s on %s", client_ip, scope)
                response = jsonify({"error": "Too many requests", "retryAfter": retry_after})
                response.status_code = 429
                response.headers["Retry-After"] = str(retry_after)
                return response
            return f(*args, **kwargs)

        return decorated_function

    return decorator


@app.route("/")
def index():
    """Redirect to API docs"""
    return redirect("/api-docs/")


@app.route("/api/lookup", methods=["POST"])
@rate_limited("lookup")
def api_lookup():
    """
    Find addresses for a postcode
    ---
    tags:
      - Addresses
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required: [postcode]
          properties:
            postcode:
              type: string
              example: CT16 1AA
    responses:
      200:
        description: Matching addresses
        schema:
          type: object
          properties:
            addresses:
              type: array
              items:
                type: object
                properties:
                  uprn:
                    type: string
                  address:
                    type: string
      400:
        description: Invalid UK postcode
      404:
        description: No addresses found
      429:
        description: Too many requests
      503:
        description: Council website unavailable
    """
    try:
        payload = LookupRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"error": _validation_message(e)}), 400

    try:
        addresses = lookup_addresses(payload.postcode)
    except CouncilSourceError as e:
        return _council_unavailable(e)

    if not addresses:
        return jsonify({"error": "No addresses found for this postcode"}), 404

    return jsonify(
        {"addresses": [{"uprn": address.uprn, "address": address.address} for address in addresses]}
    )


@app.route("/api/subscribe", methods=["POST"])
@rate_limited("subscribe")
def api_subscribe():
    """
    Subscribe a property and get its calendar URLs
    ---
    tags:
      - Subscriptions
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required: [uprn, address, postcode]
          properties:
            uprn:
              type: string
              example: "100060000001"
            address:
              type: string
            postcode:
              type: string
    responses:
      200:
        description: Subscription created (or existing one returned)
        schema:
          type: object
          properties:
            calendarUrl:
              type: string
            recyclingUrl:
              type: string
            generalUrl:
              type: string
            deleteUrl:
              type: string
            token:
              type: string
            services:
              type: array
              items:
                type: object
                properties:
                  name:
                    type: string
                  schedule:
                    type: string
                  nextCollection:
                    type: string
      400:
        description: Invalid input
      404:
        description: No collection services found for this property
      429:
        description: Too many requests
      503:
        description: Council website unavailable
    """
    try:
        payload = SubscribeRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"error": _validation_message(e)}), 400

    try:
        services = scrape_property_collections(payload.uprn)
    except CouncilSourceError as e:
        return _council_unavailable(e)

    if not services:
        return jsonify({"error": "No collection services found for this property"}), 404

    _, token = create_subscription(payload.uprn, payload.address, payload.postcode)
    upsert_collections(payload.uprn, services)
    logger.info("Subscribed UPRN %s with %s services", payload.uprn, len(services))

    calendar_url = f"{_base_url()}/api/calendar/{token}"
    return jsonify(
        {
            "calendarUrl": calendar_url,
            "recyclingUrl": f"{calendar_url}/recycling",
            "generalUrl": f"{calendar_url}/general",
            "deleteUrl": f"{calendar_url}/delete",
            "token": token,
            "services": [
                {
                    "name": service.service_name,
                    "schedule": service.schedule,
                    "nextCollection": service.next_collection.isoformat(),
                }
                for service in services
            ],
        }
    )


def _calendar_response(token: str, category: str | None):
    if not TOKEN_RE.match(token):
        return jsonify({"error": "Invalid calendar token"}), 400
    if category is not None and category not in FILTER_CATEGORIES:
        return (
            jsonify({"error": f"Unknown filter '{category}'", "allowed": list(FILTER_CATEGORIES)}),
            400,
        )

    subscription = get_subscription_by_token(token)
    if not subscription:
        return jsonify({"error": "Calendar not found"}), 404

    today = _today()
    document = generate_feed(
        subscription,
        get_collections(subscription.uprn),
        get_override_map(subscription.uprn, today=today),
        category=category,
        today=today,
        shift_anchors=get_shift_anchors(subscription.uprn),
    )
    max_age = config.CALENDAR_FILTERED_CACHE_SECONDS if category else config.CALENDAR_CACHE_SECONDS
    response = Response(document, content_type="text/calendar; charset=utf-8")
    response.headers["Content-Disposition"] = (
        f'attachment; filename="{calendar_filename(subscription.postcode, category)}"'
    )
    response.headers["Cache-Control"] = f"public, max-age={max_age}"
    return response


@app.route("/api/calendar/<token>", methods=["GET"])
@rate_limited("calendar")
def api_calendar(token: str):
    """
    iCalendar feed with every bin collection for a subscription
    ---
    tags:
      - Calendars
    produces:
      - text/calendar
    parameters:
      - name: token
        in: path
        type: string
        required: true
        description: Calendar token returned by /api/subscribe
      - name: filter
        in: query
        type: string
        required: false
        enum: [recycling, general]
        description: Only include days with this kind of bin
    responses:
      200:
        description: iCalendar document
      400:
        description: Malformed token or unknown filter
      404:
        description: Calendar not found
    """
    return _calendar_response(token, request.args.get("filter") or None)


@app.route("/api/calendar/<token>/<category>", methods=["GET"])
@rate_limited("calendar")
def api_calendar_filtered(token: str, category: str):
    """
    iCalendar feed restricted to recycling or general waste days
    ---
    tags:
      - Calendars
    produces:
      - text/calendar
    parameters:
      - name: token
        in: path
        type: string
        required: true
      - name: category
        in: path
        type: string
        required: true
        enum: [recycling, general]
    responses:
      200:
        description: iCalendar document
      400:
        description: Malformed token or unknown filter
      404:
        description: Calendar not found
    """
    return _calendar_response(token, category)


@app.route("/api/calendar/<token>/delete", methods=["GET", "POST"])
@rate_limited("delete")
def api_calendar_delete(token: str):
    """
    Delete a subscription (GET shows a confirmation page)
    ---
    tags:
      - Subscriptions
    produces:
      - text/html
    parameters:
      - name: token
        in: path
        type: string
        required: true
    responses:
      200:
        description: Confirmation page, or deletion result page
      400:
        description: Malformed token
      404:
        description: Calendar not found
    """
    if not TOKEN_RE.match(token):
        return render_template("message.html", title="Invalid link", message="This link is not valid."), 400

    subscription = get_subscription_by_token(token)
    if not subscription:
        return (
            render_template(
                "message.html",
                title="Not found",
                message="This calendar no longer exists. It may already have been deleted.",
            ),
            404,
        )

    if request.method == "GET":
        return render_template("delete_confirm.html", subscription=subscription, token=token)

    delete_subscription_by_token(token)
    logger.info("Deleted subscription for UPRN %s", subscription.uprn)
    return render_template(
        "message.html",
        title="Calendar deleted",
        message="Your calendar and all stored collection data for this address have been removed.",
    )


if __name__ == "__main__":
    logger.info("Starting API server on %s:%s", config.API_HOST, config.API_PORT)
    app.run(host=config.API_HOST, port=config.API_PORT, debug=config.DEBUG)
