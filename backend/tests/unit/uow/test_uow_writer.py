import pytest
from foodapp.repositories.user import UserRepository
from foodapp.uow import SQLAlchemyUnitOfWork as RWuow
from tests.factories.user import UserFactory


class TestSQLAlchemyUnitOfWork:
    def test_commits_on_clean_exit(self, session):
        with RWuow() as uow:
            user = UserFactory.build()
            uow.users.add(user)
        assert UserRepository(session=session).get(user.id) is not None

    def test_rolls_back_on_error(self, session):
        email = "rollback@example.com"
        with pytest.raises(RuntimeError), RWuow() as uow:
            uow.users.add(UserFactory.build(email=email))
            raise RuntimeError("boom")
        assert not UserRepository(session=session).exists_by_email(email)
