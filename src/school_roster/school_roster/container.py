from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.mysql_audit_repository import MySQLAuditRepository
from .attendance.mysql_ledger_repository import MySQLLedgerRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import reference_zone
from .core.constants import (
    CREDENTIAL_TTL_DAYS,
    DEFAULT_REFERENCE_TIMEZONE,
    DEFAULT_TRANSPORT_SESSION,
    PROMOTION_TERMINAL_RANK,
)
from .credentials.service import CredentialService
from .database.connection import DBConfig, DatabaseConnection
from .promotion.service import PromotionService
from .roster.mysql_class_repository import MySQLClassRepository
from .roster.mysql_student_repository import MySQLStudentRepository
from .roster.service import RosterService
from .transport.mysql_vehicle_repository import MySQLVehicleRepository
from .transport.service import TransportService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    students_repo: MySQLStudentRepository
    classes_repo: MySQLClassRepository
    ledgers_repo: MySQLLedgerRepository
    audit_repo: MySQLAuditRepository
    vehicles_repo: MySQLVehicleRepository

    roster_service: RosterService
    promotion_service: PromotionService
    credential_service: CredentialService
    attendance_service: AttendanceService
    transport_service: TransportService


def build_container(*, db_config: dict, settings: Optional[Any] = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    zone = reference_zone(getattr(settings, "REFERENCE_TIMEZONE", DEFAULT_REFERENCE_TIMEZONE))
    ttl_days = int(getattr(settings, "CREDENTIAL_TTL_DAYS", CREDENTIAL_TTL_DAYS))
    terminal_rank = int(getattr(settings, "PROMOTION_TERMINAL_RANK", PROMOTION_TERMINAL_RANK))
    default_session = getattr(settings, "DEFAULT_TRANSPORT_SESSION", DEFAULT_TRANSPORT_SESSION)

    students_repo = MySQLStudentRepository(conn)
    classes_repo = MySQLClassRepository(conn)
    ledgers_repo = MySQLLedgerRepository(conn)
    audit_repo = MySQLAuditRepository(conn)
    vehicles_repo = MySQLVehicleRepository(conn)

    roster_service = RosterService(students_repo, classes_repo)
    promotion_service = PromotionService(students_repo, classes_repo, terminal_rank=terminal_rank)
    credential_service = CredentialService(students_repo, classes_repo, ttl_days=ttl_days)
    attendance_service = AttendanceService(
        ledgers_repo,
        audit_repo,
        students_repo,
        classes_repo,
        vehicles_repo,
        credential_service,
        zone=zone,
        default_session=default_session,
    )
    transport_service = TransportService(vehicles_repo)

    return Container(
        conn=conn,
        students_repo=students_repo,
        classes_repo=classes_repo,
        ledgers_repo=ledgers_repo,
        audit_repo=audit_repo,
        vehicles_repo=vehicles_repo,
        roster_service=roster_service,
        promotion_service=promotion_service,
        credential_service=credential_service,
        attendance_service=attendance_service,
        transport_service=transport_service,
    )
