"""Management command printing the derived weather snapshot as JSON."""
from __future__ import annotations

import json
from typing import Any

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from backend.api import views


class Command(BaseCommand):
    help = "Resolve a location, fetch its weather and print the derived snapshot"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--lat", type=float, help="Latitude")
        parser.add_argument("--lon", type=float, help="Longitude")
        parser.add_argument("--name", type=str, help="Display name for the coordinate")
        parser.add_argument("--units", choices=["metric", "imperial"], help="Unit mode for this report")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        try:
            location = views.parse_location(
                {"lat": options.get("lat"), "lon": options.get("lon"), "name": options.get("name")}
            )
            unit_mode = views.parse_units(options.get("units"))
        except ValueError as exc:
            raise CommandError(str(exc)) from exc

        snapshot = async_to_sync(views.run_pipeline)(views.build_controller(), location, unit_mode)
        if snapshot.error:
            raise CommandError(snapshot.error)
        self.stdout.write(json.dumps(views.serialize_snapshot(snapshot), ensure_ascii=False))
