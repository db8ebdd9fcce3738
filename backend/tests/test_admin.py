import pytest

from taskpay.accounts.service import AccountService
from taskpay.admin.service import AdminService
from taskpay.errors import InvalidSetting, UserNotFound, WithdrawalNotFound
from taskpay.platform_settings import platform_settings
from taskpay.withdrawals.service import WithdrawalService


@pytest.fixture()
def admin_service():
    return AdminService()


@pytest.fixture()
def admin(make_user):
    return make_user(is_admin=True, username="boss")


def test_balance_and_bonus_overrides_are_audited(admin_service, admin, make_user):
    user = make_user(balance=10, bonus=20)

    assert admin_service.set_balance(admin.id, user.id, 500)["balance"] == 500
    assert admin_service.set_bonus(admin.id, user.id, 1200)["bonus"] == 1200

    entries = admin_service.list_audit()
    assert [e["action"] for e in entries] == ["set_bonus", "set_balance"]
    assert entries[0]["admin_username"] == "boss"
    assert entries[0]["entity_id"] == str(user.id)
    assert entries[1]["meta"] == {"balance": 500}


def test_negative_overrides_are_refused(admin_service, admin, make_user):
    user = make_user()

    with pytest.raises(ValueError):
        admin_service.set_balance(admin.id, user.id, -1)
    with pytest.raises(ValueError):
        admin_service.set_bonus(admin.id, user.id, -5)

    assert admin_service.list_audit() == []


def test_override_for_unknown_user(admin_service, admin):
    with pytest.raises(UserNotFound):
        admin_service.set_balance(admin.id, 98765, 10)


def test_activation_toggle(admin_service, admin, make_user):
    user = make_user()
    accounts = AccountService()

    paid = admin_service.set_activation(admin.id, user.id, "paid")
    assert paid["status"] == "paid"
    assert paid["paid"] == paid["fee"]
    assert accounts.is_activated(user.id)

    admin_service.set_activation(admin.id, user.id, "unpaid")
    assert not accounts.is_activated(user.id)


def test_withdrawal_review(admin_service, admin, make_user):
    user = make_user(balance=1000, activated=True)
    request = WithdrawalService().request_withdrawal(user.id, 300, "0712345678", "mpesa")
    withdrawal_id = request["withdrawal"]["id"]

    assert [w["id"] for w in admin_service.list_withdrawals("pending")] == [withdrawal_id]

    updated = admin_service.set_withdrawal_status(admin.id, withdrawal_id, "paid")

    assert updated["status"] == "paid"
    assert admin_service.list_withdrawals("pending") == []
    with pytest.raises(WithdrawalNotFound):
        admin_service.set_withdrawal_status(admin.id, 555, "paid")


def test_settings_update(admin_service, admin):
    result = admin_service.update_settings(admin.id, {"tasks_per_day": 12, "min_withdraw_ksh": 250})

    assert result["tasks_per_day"] == 12
    assert platform_settings.get_int("min_withdraw_ksh") == 250
    assert admin_service.list_audit()[0]["entity"] == "app_settings"


def test_settings_update_rejects_bad_values(admin_service, admin):
    with pytest.raises(InvalidSetting):
        admin_service.update_settings(admin.id, {"no_such_setting": 1})
    with pytest.raises(InvalidSetting):
        admin_service.update_settings(admin.id, {"tasks_per_day": -3})

    assert platform_settings.get_int("tasks_per_day") == 10
    assert admin_service.list_audit() == []


def test_dashboard_and_user_detail(admin_service, admin, make_user):
    user = make_user(balance=700, bonus=50, activated=True)
    WithdrawalService().request_withdrawal(user.id, 200, "0712345678", "mpesa")

    stats = admin_service.dashboard_stats()
    assert stats["users"] == 2
    assert stats["activated_users"] == 1
    assert stats["total_balance"] == 500
    assert stats["pending_withdrawals"] == 1
    assert stats["pending_withdrawal_amount"] == 200

    detail = admin_service.get_user_detail(user.id)
    assert detail["user"]["balance"] == 500
    assert detail["activation"]["status"] == "paid"
    assert len(detail["withdrawals"]) == 1


def test_user_search(admin_service, admin, make_user):
    make_user(username="searchme")
    make_user(username="other")

    found = admin_service.list_users("search")

    assert [u["username"] for u in found] == ["searchme"]


def test_grant_admin(admin_service, make_user):
    make_user(username="promote")

    user = admin_service.grant_admin("Promote@example.com")

    assert user.is_admin
    with pytest.raises(UserNotFound):
        admin_service.grant_admin("ghost@example.com")
