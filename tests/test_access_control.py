import pytest

from utils.goal_pacing.access_control import (
    AccessControl,
    ACCESS_FULL,
    ACCESS_STORE,
    ACCESS_SELF,
    categories_for_role,
)


class TestCategoriesForRole:
    """Tests for the role -> individual categories mapping."""

    def test_pharmacist(self):
        assert categories_for_role('farmaceutico') == ['geral', 'generico_similar', 'goodlife']

    def test_consultant(self):
        assert categories_for_role('Consultora') == ['perfumaria_alta', 'dermocosmetico', 'goodlife']

    @pytest.mark.parametrize('role', [None, '', 'estagiario'])
    def test_unknown_role_gets_general_only(self, role):
        assert categories_for_role(role) == ['geral']

    def test_returns_a_copy(self):
        categories_for_role('auxiliar').append('x')
        assert 'x' not in categories_for_role('auxiliar')


class TestAccessLevel:
    """Tests for access levels by role."""

    @pytest.mark.parametrize('role,level', [
        ('admin', ACCESS_FULL),
        ('SUPERVISOR', ACCESS_FULL),
        ('gerente', ACCESS_STORE),
        ('sublider', ACCESS_STORE),
        ('auxiliar', ACCESS_SELF),
        ('consultora', ACCESS_SELF),
        (None, ACCESS_SELF),
    ])
    def test_levels(self, role, level):
        assert AccessControl(role, 1, store_id=3).get_access_level() == level

    def test_manager_sees_team_not_other_stores(self):
        access = AccessControl('gerente', 1, store_id=3)

        assert access.can_view_team()
        assert not access.can_select_store()
        assert access.has_individual_goals()

    def test_admin_has_no_individual_goals(self):
        access = AccessControl('admin', 1)

        assert access.can_select_store()
        assert not access.has_individual_goals()

    def test_collaborator_sees_own_store_goals(self):
        access = AccessControl('auxiliar', 9, store_id=3)

        assert access.can_view_store_goals()
        assert not access.can_view_team()

    def test_collaborator_without_store(self):
        assert not AccessControl('auxiliar', 9).can_view_store_goals()


class TestStoreFiltering:
    """Tests for store selection limits."""

    def test_full_access_keeps_all(self):
        assert AccessControl('admin', 1).filter_store_ids([1, 2, 3]) == [1, 2, 3]

    def test_store_access_keeps_own(self):
        assert AccessControl('gerente', 1, store_id=2).filter_store_ids([1, 2, 3]) == [2]

    def test_no_store_keeps_nothing(self):
        assert AccessControl('auxiliar', 1).filter_store_ids([1, 2, 3]) == []

    def test_validate_store_falls_back_to_own(self):
        access = AccessControl('lider', 1, store_id=2)

        assert access.validate_store(5) == 2
        assert access.validate_store(None) == 2

    def test_validate_store_full_access(self):
        assert AccessControl('rh', 1).validate_store(5) == 5
