"""
Tests for reference data seeding.
"""

from fintrack.services.reference_service import ReferenceService


class TestSeedDefaults:

    def test_seeds_types_currencies_and_categories(self, db_session):
        service = ReferenceService(db_session)

        assert service.seed_defaults() is True
        db_session.commit()

        assert [t.id for t in service.list_types()] == [
            "compensation", "expense", "income", "investment", "savings",
        ]
        assert [c.code for c in service.list_currencies()] == ["EUR", "GBP", "USD"]

    def test_second_seed_is_noop(self, db_session):
        service = ReferenceService(db_session)
        service.seed_defaults()
        db_session.commit()

        assert service.seed_defaults() is False
        assert len(service.list_types()) == 5
