"""Flask application exposing the repair shop core as JSON."""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, abort, jsonify, request, send_file

from jewelryrepair.shop.errors import (
    ImageStoreError,
    NotFoundError,
    SubmissionError,
    ValidationError,
)
from jewelryrepair.shop.ledger import parse_amount
from jewelryrepair.shop.orders import OrderStatus
from jewelryrepair.shop.system import RepairShopSystem


def create_app(database_path: str | None = None, **overrides: Any) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY="jrms-secret",
        DATABASE_PATH=database_path,
        UPLOAD_FOLDER=None,
        SEED_SAMPLE_CLIENTS=True,
        LOG_LEVEL="INFO",
    )
    app.config.from_prefixed_env("JRMS")
    app.config.update(overrides)
    logging.basicConfig(level=app.config["LOG_LEVEL"])

    system = RepairShopSystem(
        app.config["DATABASE_PATH"],
        upload_folder=app.config["UPLOAD_FOLDER"],
        seed_sample_clients=app.config["SEED_SAMPLE_CLIENTS"],
    )
    app.extensions["repair_shop"] = system

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError) -> Any:
        return jsonify(error=str(exc)), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc: NotFoundError) -> Any:
        return jsonify(error=str(exc)), 404

    @app.errorhandler(SubmissionError)
    def handle_submission_error(exc: SubmissionError) -> Any:
        return jsonify(error=str(exc)), 502

    def form_state() -> dict:
        return system.form.to_dict()

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------
    @app.get("/clients")
    def clients() -> Any:
        results = system.directory.query(request.args.get("q", ""))
        state = system.directory.sort_state
        return jsonify(
            clients=[client.to_dict() for client in results],
            sort={"key": state.key, "direction": state.direction},
            summary=system.directory.summary(),
        )

    @app.post("/clients")
    def add_client() -> Any:
        payload = request.get_json(silent=True) or request.form
        client = system.add_client(
            name=payload.get("name", ""),
            mobile=payload.get("mobile", ""),
            email=payload.get("email") or None,
        )
        return jsonify(client.to_dict()), 201

    @app.post("/clients/sort/<key>")
    def toggle_sort(key: str) -> Any:
        state = system.toggle_sort(key)
        return jsonify(key=state.key, direction=state.direction)

    @app.get("/clients/<client_id>")
    def client_detail(client_id: str) -> Any:
        return jsonify(system.get_client(client_id).to_dict())

    # ------------------------------------------------------------------
    # Repair intake
    # ------------------------------------------------------------------
    @app.post("/repairs/new")
    def new_repair() -> Any:
        payload = request.get_json(silent=True) or {}
        system.new_repair(client_id=payload.get("client_id"))
        return jsonify(form_state()), 201

    @app.get("/repairs/new")
    def repair_form() -> Any:
        return jsonify(form_state())

    @app.patch("/repairs/new")
    def update_repair() -> Any:
        payload = request.get_json(silent=True) or {}
        amount_paid = parse_amount(payload["amount_paid"]) if "amount_paid" in payload else None
        status = OrderStatus.parse(payload["status"]) if "status" in payload else None
        if "client_name" in payload or "client_mobile" in payload:
            system.form.set_customer(
                name=payload.get("client_name"), mobile=payload.get("client_mobile")
            )
        if amount_paid is not None:
            system.form.set_amount_paid(amount_paid)
        if status is not None:
            system.form.set_status(status)
        return jsonify(form_state())

    @app.post("/repairs/new/client")
    def pick_client() -> Any:
        payload = request.get_json(silent=True) or {}
        if payload.get("client_id"):
            system.pick_client(payload["client_id"])
        else:
            system.pick_new_client(
                name=payload.get("name", ""),
                mobile=payload.get("mobile", ""),
                email=payload.get("email") or None,
            )
        return jsonify(form_state())

    @app.post("/repairs/new/items")
    def add_item() -> Any:
        item = system.form.add_item()
        return jsonify(item.to_dict()), 201

    @app.patch("/repairs/new/items/<item_id>")
    def update_item(item_id: str) -> Any:
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            raise ValidationError("Send the item fields as a JSON object")
        system.form.update_fields(item_id, payload)
        return jsonify(form_state())

    @app.delete("/repairs/new/items/<item_id>")
    def remove_item(item_id: str) -> Any:
        system.form.remove_item(item_id)
        return jsonify(form_state())

    @app.post("/repairs/new/items/<item_id>/image")
    def upload_image(item_id: str) -> Any:
        upload = request.files.get("image")
        if upload is None:
            raise ValidationError("No image uploaded")
        image_ref = system.form.attach_image(item_id, upload)
        return jsonify(image_ref=image_ref, form=form_state())

    @app.get("/images/<image_ref>")
    def preview_image(image_ref: str) -> Any:
        if system.image_store is None:
            abort(404)
        try:
            path = system.image_store.preview(image_ref)
        except ImageStoreError:
            abort(404)
        return send_file(path)

    @app.post("/repairs/new/due-date/<action>")
    def due_date(action: str) -> Any:
        field = system.form.due_date
        payload = request.get_json(silent=True) or {}
        if action == "open":
            field.open()
        elif action == "close":
            field.close()
        elif action in ("prev", "next"):
            field.navigate(action)
        elif action == "select":
            try:
                day = int(payload.get("day"))
            except (TypeError, ValueError):
                raise ValidationError("Pick a day of the month") from None
            field.select_day(day)
        elif action == "today":
            field.today()
        elif action == "clear":
            field.clear()
        else:
            abort(404)
        return jsonify(field.to_dict())

    @app.post("/repairs/new/submit")
    def submit_repair() -> Any:
        order = system.submit_repair()
        return jsonify(order), 201

    return app


__all__ = ["create_app"]
