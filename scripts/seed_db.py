from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.school_roster.school_roster.container import build_container
from src.school_roster.school_roster.database.bootstrap import apply_seed_sql


def _place_demo_students(container) -> None:
    # seed.sql cannot write rosters by id, so go through the roster service.
    first_class = container.classes_repo.get_by_name("1 A")
    if first_class is None:
        return
    for student in container.students_repo.list_all():
        if student.class_id is None:
            container.roster_service.assign_student_to_class(student.student_id, first_class.class_id)


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    seed_path = REPO_ROOT / "database" / "seed.sql"
    apply_seed_sql(db_config, seed_path=seed_path)
    _place_demo_students(build_container(db_config=db_config, settings=settings))

    print(
        "OK: Seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
