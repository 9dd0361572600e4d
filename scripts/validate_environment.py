#!/usr/bin/env python3
"""Check that the local Game Night Planner environment can run end to end."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.domain.constraints import SchedulerConfig, validate_scheduler_config
from backend.repository.data_repository import DataRepository
from backend.services.attendance_service import AttendanceService
from backend.services.scheduling_service import GameScheduleService
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="game-night-env-")

    # CHECK 1: Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("requests", "requests"),
        ("streamlit", "streamlit"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        base_settings = get_settings()

        # CHECK 3: Scheduler configuration
        try:
            validate_scheduler_config(SchedulerConfig.from_settings(base_settings))
            ok, line = _print_result(
                "Scheduler configuration",
                True,
                f": timezone={base_settings.schedule_timezone}",
            )
        except ValueError as exc:
            ok, line = _print_result("Scheduler configuration", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        validation_settings = replace(
            base_settings,
            database_path=Path(temp_dir) / "game_night_validation.db",
        )
        repository = DataRepository(validation_settings)

        # CHECK 4: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except RuntimeError as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Demo event seeding
        event_id = None
        try:
            event_id = repository.seed_demo_data()
            if event_id is None:
                raise RuntimeError("fresh database was not seeded")
            ok, line = _print_result("Demo event seeding", True, f": event_id={event_id}")
        except RuntimeError as exc:
            ok, line = _print_result("Demo event seeding", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Scheduler run over the demo event
        if event_id is not None:
            try:
                schedule_service = GameScheduleService(
                    repository=repository,
                    settings=validation_settings,
                )
                suggested = schedule_service.recalculate(event_id)
                if not suggested:
                    raise RuntimeError("no game was scheduled for the demo event")
                ok, line = _print_result("Game scheduling", True, f": {len(suggested)} suggestions")
            except Exception as exc:
                ok, line = _print_result("Game scheduling", False, str(exc))
            results.append(line)
            all_passed = all_passed and ok

            # CHECK 7: Attendance summary
            try:
                summary = AttendanceService(
                    repository=repository,
                    settings=validation_settings,
                ).summarize_event_attendance(event_id)
                ok, line = _print_result(
                    "Attendance summary",
                    True,
                    f": peak={summary['peak_bucket']}",
                )
            except Exception as exc:
                ok, line = _print_result("Attendance summary", False, str(exc))
            results.append(line)
            all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Game Night Planner Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
