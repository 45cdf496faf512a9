import unittest
from datetime import datetime, date
from unittest.mock import patch

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from core.database import Base
import models_bootstrap  # noqa: F401

from core.cache import TaggedCache, shift_tag
from core.errors import (
    AlreadyAssigned,
    AssignmentLocked,
    Forbidden,
    InvalidTransition,
    NotEligible,
    NotFound,
    TimeConflict,
)
from company.models import Company
from job.models import Job
from user.models import User, UserRole
from shift.models import Shift
from assignment.models import Assignment, WorkerStatus
from timeclock.models import TimeEntry
from requirement.roles import RoleCode

# Service + DTOs under test
from assignment import service
from assignment.schema import AssignmentCreate
from assignment.conflict import find_conflicts, has_conflict


class AssignmentServiceTests(unittest.TestCase):
    def setUp(self):
        # Fresh in-memory DB
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        # ---- Seed companies + jobs ----
        self.acme = Company(name="Acme Events")
        self.globex = Company(name="Globex Arena")
        self.db.add_all([self.acme, self.globex])
        self.db.flush()
        self.job_acme = Job(company_id=self.acme.id, name="Spring Concert")
        self.job_globex = Job(company_id=self.globex.id, name="Hockey Night")
        self.db.add_all([self.job_acme, self.job_globex])
        self.db.flush()

        # ---- Seed users ----
        self.admin = User(name="Ada", email="ada@crewplan.io", role=UserRole.Admin, is_active=True)
        self.staff = User(name="Sam", email="sam@crewplan.io", role=UserRole.Staff, is_active=True)
        self.chief = User(
            name="Cora", email="cora@crewplan.io", role=UserRole.CrewChief,
            is_active=True, crew_chief_eligible=True,
        )
        self.worker = User(name="Wes", email="wes@crewplan.io", role=UserRole.Employee, is_active=True)
        self.forky = User(
            name="Finn", email="finn@crewplan.io", role=UserRole.Employee,
            is_active=True, fork_operator_eligible=True,
        )
        self.client_user = User(
            name="Cliff", email="cliff@crewplan.io", role=UserRole.CompanyUser,
            is_active=True, company_id=self.acme.id,
        )
        self.db.add_all([self.admin, self.staff, self.chief, self.worker, self.forky, self.client_user])
        self.db.flush()

        # ---- Seed shifts (Monday) ----
        self.shift_a = Shift(
            job_id=self.job_acme.id,
            date=date(2025, 6, 2),
            start_at=datetime(2025, 6, 2, 9, 0),
            end_at=datetime(2025, 6, 2, 17, 0),
            required_crew_chiefs=1,
            required_stagehands=2,
        )
        self.shift_b = Shift(
            job_id=self.job_globex.id,
            date=date(2025, 6, 2),
            start_at=datetime(2025, 6, 2, 13, 0),
            end_at=datetime(2025, 6, 2, 15, 0),
        )
        self.shift_evening = Shift(
            job_id=self.job_globex.id,
            date=date(2025, 6, 2),
            start_at=datetime(2025, 6, 2, 17, 0),
            end_at=datetime(2025, 6, 2, 22, 0),
        )
        self.db.add_all([self.shift_a, self.shift_b, self.shift_evening])
        self.db.commit()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _assign(self, shift, user, role=RoleCode.SH, actor=None, **kw):
        dto = AssignmentCreate(shift_id=shift.id, user_id=user.id, role_code=role, **kw)
        return service.assign_worker(self.db, dto, actor=actor or self.admin)

    # ---------- assign ----------

    def test_assign_worker_creates_assigned_row(self):
        row = self._assign(self.shift_a, self.worker)
        self.assertEqual(row.status, WorkerStatus.Assigned)
        self.assertEqual(row.role_code, "SH")
        self.assertEqual(row.time_entries, [])

    def test_duplicate_assign_fails(self):
        self._assign(self.shift_a, self.worker)
        with self.assertRaises(AlreadyAssigned):
            self._assign(self.shift_a, self.worker, role=RoleCode.GL)
        rows = service.get_assignments(self.db, shift_id=self.shift_a.id)
        self.assertEqual(len(rows), 1)

    def test_unique_constraint_catches_concurrent_duplicate(self):
        self._assign(self.shift_a, self.worker)
        # the duplicate pre-check read happened before the other insert landed
        with patch("assignment.service.get_assignment_for_user", return_value=None):
            with self.assertRaises(AlreadyAssigned):
                self._assign(self.shift_a, self.worker, role=RoleCode.GL)
        rows = service.get_assignments(self.db, shift_id=self.shift_a.id)
        self.assertEqual([r.role_code for r in rows], ["SH"])

    def test_missing_shift_or_worker_is_not_found(self):
        with self.assertRaises(NotFound):
            service.assign_worker(
                self.db,
                AssignmentCreate(shift_id=999, user_id=self.worker.id, role_code=RoleCode.SH),
                actor=self.admin,
            )
        with self.assertRaises(NotFound):
            service.assign_worker(
                self.db,
                AssignmentCreate(shift_id=self.shift_a.id, user_id=999, role_code=RoleCode.SH),
                actor=self.admin,
            )

    def test_crew_chief_role_requires_eligibility(self):
        with self.assertRaises(NotEligible):
            self._assign(self.shift_a, self.worker, role=RoleCode.CC)
        row = self._assign(self.shift_a, self.chief, role=RoleCode.CC)
        self.assertEqual(row.role_code, "CC")

    def test_fork_roles_require_fork_eligibility(self):
        with self.assertRaises(NotEligible):
            self._assign(self.shift_a, self.worker, role=RoleCode.RFO)
        row = self._assign(self.shift_a, self.forky, role=RoleCode.RFO)
        self.assertEqual(row.role_code, "RFO")

    def test_admin_worker_bypasses_eligibility(self):
        row = self._assign(self.shift_a, self.admin, role=RoleCode.FO)
        self.assertEqual(row.role_code, "FO")

    def test_overlapping_shift_raises_time_conflict(self):
        self._assign(self.shift_a, self.worker)
        with self.assertRaises(TimeConflict) as ctx:
            self._assign(self.shift_b, self.worker)
        conflict = ctx.exception.conflict
        self.assertEqual(conflict.shift_id, self.shift_a.id)
        self.assertEqual(conflict.company_name, "Acme Events")
        self.assertEqual(conflict.job_name, "Spring Concert")
        self.assertEqual(conflict.start_at, datetime(2025, 6, 2, 9, 0))
        self.assertEqual(conflict.end_at, datetime(2025, 6, 2, 17, 0))
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.detail["conflict"]["company_name"], "Acme Events")

    def test_touching_shifts_do_not_conflict(self):
        self._assign(self.shift_a, self.worker)
        row = self._assign(self.shift_evening, self.worker)
        self.assertEqual(row.shift_id, self.shift_evening.id)

    def test_no_show_assignment_does_not_block(self):
        first = self._assign(self.shift_a, self.worker)
        service.mark_no_show(self.db, first.id, actor=self.admin, now=datetime(2025, 6, 2, 9, 30))
        self.assertIsNone(has_conflict(self.db, self.worker.id, self.shift_b.id))
        self._assign(self.shift_b, self.worker)

    def test_find_conflicts_lists_every_overlap(self):
        self._assign(self.shift_b, self.worker)
        self._assign(self.shift_evening, self.worker)
        conflicts = find_conflicts(self.db, self.worker.id, self.shift_a.id)
        self.assertEqual([c.shift_id for c in conflicts], [self.shift_b.id])

    def test_staff_may_assign_but_company_user_may_not(self):
        self._assign(self.shift_a, self.worker, actor=self.staff)
        with self.assertRaises(Forbidden):
            self._assign(self.shift_a, self.forky, actor=self.client_user)

    def test_crew_chief_manages_only_own_shift(self):
        with self.assertRaises(Forbidden):
            self._assign(self.shift_a, self.worker, actor=self.chief)
        self._assign(self.shift_a, self.chief, role=RoleCode.CC)
        row = self._assign(self.shift_a, self.worker, actor=self.chief)
        self.assertEqual(row.user_id, self.worker.id)

    def test_assign_invalidates_shift_cache(self):
        cache = TaggedCache(60)
        cache.set("fulfillment", "stale", tags=[shift_tag(self.shift_a.id)])
        dto = AssignmentCreate(shift_id=self.shift_a.id, user_id=self.worker.id, role_code=RoleCode.SH)
        service.assign_worker(self.db, dto, actor=self.admin, cache=cache)
        self.assertIsNone(cache.get("fulfillment"))

    # ---------- replace ----------

    def test_replace_untouched_assignment(self):
        old = self._assign(self.shift_a, self.worker)
        new = self._assign(self.shift_a, self.forky, replace_assignment_id=old.id)
        users = [a.user_id for a in service.get_assignments(self.db, shift_id=self.shift_a.id)]
        self.assertEqual(users, [self.forky.id])
        self.assertEqual(new.status, WorkerStatus.Assigned)

    def test_replace_same_worker_with_new_role(self):
        old = self._assign(self.shift_a, self.forky)
        new = self._assign(self.shift_a, self.forky, role=RoleCode.FO, replace_assignment_id=old.id)
        rows = service.get_assignments(self.db, shift_id=self.shift_a.id)
        self.assertEqual([(r.user_id, r.role_code) for r in rows], [(self.forky.id, "FO")])
        self.assertEqual(new.id, rows[0].id)

    def test_replace_with_clock_activity_is_locked(self):
        old = self._assign(self.shift_a, self.worker)
        old.time_entries.append(TimeEntry(entry_number=1, clock_in=datetime(2025, 6, 2, 9, 0), is_active=True))
        old.status = WorkerStatus.ClockedIn
        self.db.commit()
        with self.assertRaises(AssignmentLocked):
            self._assign(self.shift_a, self.forky, replace_assignment_id=old.id)

    # ---------- unassign ----------

    def test_assign_then_unassign_round_trip(self):
        before = [a.id for a in service.get_assignments(self.db, shift_id=self.shift_a.id)]
        row = self._assign(self.shift_a, self.worker)
        service.unassign_worker(self.db, row.id, actor=self.admin)
        after = [a.id for a in service.get_assignments(self.db, shift_id=self.shift_a.id)]
        self.assertEqual(before, after)

    def test_unassign_after_clock_in_is_locked(self):
        row = self._assign(self.shift_a, self.worker)
        row.time_entries.append(TimeEntry(entry_number=1, clock_in=datetime(2025, 6, 2, 9, 0), is_active=True))
        row.status = WorkerStatus.ClockedIn
        self.db.commit()
        with self.assertRaises(AssignmentLocked):
            service.unassign_worker(self.db, row.id, actor=self.admin)
        self.assertIsNotNone(self.db.get(Assignment, row.id))

    def test_unassign_missing_is_not_found(self):
        with self.assertRaises(NotFound):
            service.unassign_worker(self.db, 12345, actor=self.admin)

    # ---------- no-show ----------

    def test_mark_no_show_twice_fails(self):
        row = self._assign(self.shift_a, self.worker)
        marked, outcome = service.mark_no_show(self.db, row.id, actor=self.admin, now=datetime(2025, 6, 2, 10, 0))
        self.assertEqual(marked.status, WorkerStatus.NoShow)
        # only assignment on the shift, so the shift is wound down
        self.assertTrue(outcome.shift_complete)
        with self.assertRaises(InvalidTransition):
            service.mark_no_show(self.db, row.id, actor=self.admin)

    def test_mark_no_show_after_clock_in_fails(self):
        row = self._assign(self.shift_a, self.worker)
        row.time_entries.append(TimeEntry(entry_number=1, clock_in=datetime(2025, 6, 2, 9, 0), is_active=True))
        row.status = WorkerStatus.ClockedIn
        self.db.commit()
        with self.assertRaises(InvalidTransition):
            service.mark_no_show(self.db, row.id, actor=self.admin)

    def test_get_assignments_filters_by_user(self):
        self._assign(self.shift_a, self.worker)
        self._assign(self.shift_evening, self.worker)
        self._assign(self.shift_a, self.forky)
        rows = service.get_assignments(self.db, user_id=self.worker.id)
        self.assertEqual({r.shift_id for r in rows}, {self.shift_a.id, self.shift_evening.id})
        stmt = select(Assignment).where(Assignment.user_id == self.forky.id)
        self.assertEqual(len(list(self.db.scalars(stmt))), 1)


if __name__ == "__main__":
    unittest.main()
