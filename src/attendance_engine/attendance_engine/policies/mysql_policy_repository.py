from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import DEFAULT_GEOFENCE_RADIUS_METERS
from ..core.enums import CalculationType, PenaltyType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, load_json
from ..geo.model import GeofenceConfig, GeoPoint
from ..penalties.model import PenaltyPolicy, ProgressiveRule
from .repository import GeofenceRepository, PenaltyPolicyRepository
from .selection import select_geofence


def _str_tuple(value) -> tuple[str, ...]:
    return tuple(str(v) for v in (load_json(value, []) or []))


def _opt_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


class MySQLGeofenceRepository(GeofenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active(self, tenant_id: str) -> Sequence[GeofenceConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT geofence_id, tenant_id, name, address, latitude, longitude, radius_meters,
                       enforce_for_clock_in, enforce_for_clock_out,
                       allowed_departments, allowed_employment_types
                FROM geofence_configs
                WHERE tenant_id=%s AND is_active=1
                ORDER BY geofence_id ASC
                """,
                (tenant_id,),
            )
            return [
                GeofenceConfig(
                    geofence_id=str(r["geofence_id"]),
                    name=r["name"],
                    center=GeoPoint(float(r["latitude"]), float(r["longitude"])),
                    radius_meters=float(r.get("radius_meters") or DEFAULT_GEOFENCE_RADIUS_METERS),
                    is_active=True,
                    enforce_for_clock_in=bool(r.get("enforce_for_clock_in", True)),
                    enforce_for_clock_out=bool(r.get("enforce_for_clock_out", False)),
                    allowed_departments=_str_tuple(r.get("allowed_departments")),
                    allowed_employment_types=_str_tuple(r.get("allowed_employment_types")),
                    tenant_id=r["tenant_id"],
                    address=r.get("address"),
                )
                for r in fetchall(cur)
            ]

    def get_active_geofence(
        self,
        tenant_id: str,
        department_id: Optional[str],
        employment_type: Optional[str],
        near: Optional[GeoPoint] = None,
    ) -> Optional[GeofenceConfig]:
        return select_geofence(
            self.list_active(tenant_id),
            department_id=department_id,
            employment_type=employment_type,
            near=near,
        )


class MySQLPenaltyPolicyRepository(PenaltyPolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_penalty_policies(self, tenant_id: str) -> Sequence[PenaltyPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT *
                FROM penalty_policies
                WHERE tenant_id=%s AND is_active=1
                ORDER BY priority ASC, policy_id ASC
                """,
                (tenant_id,),
            )
            return [self._to_policy(r) for r in fetchall(cur)]

    @staticmethod
    def _to_policy(r: dict) -> PenaltyPolicy:
        rules = tuple(
            ProgressiveRule(
                from_occurrence=int(x["fromOccurrence"]),
                to_occurrence=_opt_int(x.get("toOccurrence")),
                amount=_opt_float(x.get("amount")),
                percentage=_opt_float(x.get("percentage")),
                description=x.get("description"),
            )
            for x in (load_json(r.get("progressive_rules"), []) or [])
        )
        return PenaltyPolicy(
            policy_id=str(r["policy_id"]),
            tenant_id=r["tenant_id"],
            name=r["name"],
            code=r.get("code") or "",
            penalty_type=PenaltyType(r["penalty_type"]),
            calculation_type=CalculationType(r["calculation_type"]),
            amount=_opt_float(r.get("amount")),
            percentage=_opt_float(r.get("percentage")),
            hourly_rate_multiplier=_opt_float(r.get("hourly_rate_multiplier")),
            daily_rate_multiplier=_opt_float(r.get("daily_rate_multiplier")),
            threshold_minutes=_opt_int(r.get("threshold_minutes")),
            grace_period_minutes=_opt_int(r.get("grace_period_minutes")),
            grace_occurrences=_opt_int(r.get("grace_occurrences")),
            is_progressive=bool(r.get("is_progressive", False)),
            progressive_rules=rules,
            applicable_departments=_str_tuple(r.get("applicable_departments")),
            applicable_positions=_str_tuple(r.get("applicable_positions")),
            applicable_employment_types=_str_tuple(r.get("applicable_employment_types")),
            auto_apply=bool(r.get("auto_apply", True)),
            requires_approval=bool(r.get("requires_approval", False)),
            max_penalty_per_month=_opt_float(r.get("max_penalty_per_month")),
            effective_date=r.get("effective_date"),
            expiry_date=r.get("expiry_date"),
            is_active=bool(r.get("is_active", True)),
            priority=int(r.get("priority") or 100),
        )
