import unittest
from datetime import datetime, date

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.database import Base
import models_bootstrap  # noqa: F401

from core.errors import Forbidden, InvalidRequirement, NotFound
from company.models import Company
from job.models import Job
from user.models import User, UserRole
from shift.models import Shift
from shift import service as shift_service
from shift.schemas import ShiftCreate
from requirement.roles import ROLE_TABLE, RoleCode, parse_role_code, role_info
from requirement.schema import RoleRequirementItem

from requirement import service


class RoleTableTests(unittest.TestCase):
    def test_every_code_has_a_counter(self):
        self.assertEqual(set(ROLE_TABLE), set(RoleCode))
        for info in ROLE_TABLE.values():
            self.assertTrue(hasattr(Shift, info.requirement_field))

    def test_eligibility_flags(self):
        self.assertEqual(role_info("CC").eligibility_flag, "crew_chief_eligible")
        self.assertEqual(role_info(RoleCode.FO).eligibility_flag, "fork_operator_eligible")
        self.assertEqual(role_info(RoleCode.RFO).eligibility_flag, "fork_operator_eligible")
        self.assertIsNone(role_info(RoleCode.SH).eligibility_flag)

    def test_parse_role_code(self):
        self.assertEqual(parse_role_code("RG"), RoleCode.RG)
        self.assertIsNone(parse_role_code("WR"))


class RequirementServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        self.company = Company(name="Acme Events")
        self.db.add(self.company)
        self.db.flush()
        self.job = Job(company_id=self.company.id, name="Spring Concert")
        self.db.add(self.job)
        self.db.flush()

        self.staff = User(name="Sam", email="sam@crewplan.io", role=UserRole.Staff, is_active=True)
        self.client_user = User(
            name="Cliff", email="cliff@acme.io", role=UserRole.CompanyUser,
            is_active=True, company_id=self.company.id,
        )
        self.db.add_all([self.staff, self.client_user])
        self.db.flush()

        self.shift = Shift(
            job_id=self.job.id,
            date=date(2025, 6, 2),
            start_at=datetime(2025, 6, 2, 9, 0),
            end_at=datetime(2025, 6, 2, 17, 0),
        )
        self.db.add(self.shift)
        self.db.commit()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_get_normalizes_crew_chiefs(self):
        req = service.get_requirements(self.db, self.shift.id)
        self.assertEqual(req.CC, 1)
        self.assertEqual(req.SH, 0)
        self.assertEqual(req.total, 1)

    def test_set_overwrites_all_counters(self):
        service.set_requirements(
            self.db, self.shift.id,
            [RoleRequirementItem(role_code=RoleCode.SH, required_count=4),
             RoleRequirementItem(role_code=RoleCode.RG, required_count=2)],
            actor=self.staff,
        )
        req = service.set_requirements(
            self.db, self.shift.id,
            [RoleRequirementItem(role_code=RoleCode.CC, required_count=2),
             RoleRequirementItem(role_code=RoleCode.SH, required_count=3)],
            actor=self.staff,
        )
        self.assertEqual((req.CC, req.SH, req.RG), (2, 3, 0))
        self.assertEqual(self.db.get(Shift, self.shift.id).required_riggers, 0)

    def test_invalid_items_rejected(self):
        with self.assertRaises(InvalidRequirement):
            service.set_requirements(
                self.db, self.shift.id,
                [RoleRequirementItem(role_code=RoleCode.SH, required_count=-1)],
                actor=self.staff,
            )
        with self.assertRaises(InvalidRequirement):
            service.set_requirements(
                self.db, self.shift.id,
                [RoleRequirementItem(role_code=RoleCode.SH, required_count=1),
                 RoleRequirementItem(role_code=RoleCode.SH, required_count=2)],
                actor=self.staff,
            )

    def test_company_user_cannot_set(self):
        with self.assertRaises(Forbidden):
            service.set_requirements(self.db, self.shift.id, [], actor=self.client_user)

    def test_missing_shift(self):
        with self.assertRaises(NotFound):
            service.get_requirements(self.db, 404)

    def test_create_shift_with_requirements(self):
        row = shift_service.create_shift(
            self.db,
            ShiftCreate(
                job_id=self.job.id,
                start_at=datetime(2025, 6, 4, 8, 0),
                end_at=datetime(2025, 6, 4, 12, 0),
                requirements=[RoleRequirementItem(role_code=RoleCode.GL, required_count=5)],
            ),
        )
        self.assertEqual(row.date, date(2025, 6, 4))
        self.assertEqual(row.required_general_laborers, 5)
        self.assertEqual(service.get_requirements(self.db, row.id).CC, 1)

    def test_create_shift_rejects_reversed_window(self):
        with self.assertRaises(ValueError):
            ShiftCreate(job_id=self.job.id, start_at=datetime(2025, 6, 4, 12), end_at=datetime(2025, 6, 4, 8))


if __name__ == "__main__":
    unittest.main()
