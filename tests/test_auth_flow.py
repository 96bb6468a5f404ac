import pytest

from factories import API, PASSWORD, create_user, get_user, latest_otp, login


@pytest.mark.anyio
async def test_register_verify_and_login(client, outbox):
    resp = await client.post(f"{API}/register", json={
        "name": "Alice",
        "email": "alice@example.com",
        "password": PASSWORD,
        "password_confirmation": PASSWORD,
    })
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["email"] == "alice@example.com"
    assert body["is_verified"] is False
    assert "password_hash" not in body

    resp = await client.post(f"{API}/email-verification/request", json={"email": "alice@example.com"})
    assert resp.status_code == 200, resp.text
    assert len(outbox.messages) == 1
    to_email, subject, html = outbox.messages[0]
    assert to_email == "alice@example.com"

    record = await latest_otp("alice@example.com", "email_verification")
    assert record is not None
    assert len(record.otp) == 4 and record.otp.isdigit()
    assert record.otp in html

    resp = await client.post(f"{API}/email-verification/verify", json={
        "email": "alice@example.com",
        "otp": record.otp,
    })
    assert resp.status_code == 200, resp.text

    user = await get_user("alice@example.com")
    assert user.is_verified is True
    assert await latest_otp("alice@example.com", "email_verification") is None

    headers = await login(client, "alice@example.com")
    resp = await client.get(f"{API}/profile", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alice"


@pytest.mark.anyio
async def test_register_rejects_duplicate_email(client):
    await create_user("taken@example.com")
    resp = await client.post(f"{API}/register", json={
        "name": "Taken",
        "email": "taken@example.com",
        "password": PASSWORD,
        "password_confirmation": PASSWORD,
    })
    assert resp.status_code == 409
    assert resp.json()["error_code"] == "CONFLICT"


@pytest.mark.anyio
async def test_register_validation_errors_list_fields(client):
    resp = await client.post(f"{API}/register", json={
        "name": "Al",
        "email": "not-an-email",
        "password": "short",
        "password_confirmation": "short",
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body["status"] == "error"
    assert body["error_code"] == "VALIDATION_ERROR"
    fields = {item["field"] for item in body["details"]}
    assert {"name", "email", "password"} <= fields


@pytest.mark.anyio
async def test_register_rejects_mismatched_confirmation(client):
    resp = await client.post(f"{API}/register", json={
        "name": "Mismatch",
        "email": "mismatch@example.com",
        "password": PASSWORD,
        "password_confirmation": PASSWORD + "x",
    })
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_login_failures_are_indistinguishable(client):
    await create_user("bob@example.com")

    wrong_password = await client.post(f"{API}/login", json={"email": "bob@example.com", "password": "nope"})
    unknown_email = await client.post(f"{API}/login", json={"email": "nobody@example.com", "password": PASSWORD})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["error_code"] == "INVALID_CREDENTIALS"


@pytest.mark.anyio
async def test_profile_requires_valid_token(client):
    assert (await client.get(f"{API}/profile")).status_code == 401

    resp = await client.get(f"{API}/profile", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.json()["error_code"] == "UNAUTHORIZED"


@pytest.mark.anyio
async def test_verification_request_for_verified_user_is_rejected(client, outbox):
    await create_user("done@example.com", verified=True)
    resp = await client.post(f"{API}/email-verification/request", json={"email": "done@example.com"})
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "ALREADY_VERIFIED"
    assert outbox.messages == []


@pytest.mark.anyio
async def test_verification_request_for_unknown_user_is_not_found(client):
    resp = await client.post(f"{API}/email-verification/request", json={"email": "ghost@example.com"})
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_wrong_verification_code_is_rejected(client):
    await create_user("carol@example.com", verified=False)
    await client.post(f"{API}/email-verification/request", json={"email": "carol@example.com"})
    record = await latest_otp("carol@example.com", "email_verification")
    wrong = "0000" if record.otp != "0000" else "1111"

    resp = await client.post(f"{API}/email-verification/verify", json={
        "email": "carol@example.com",
        "otp": wrong,
    })
    assert resp.status_code == 401
    assert resp.json()["error_code"] == "INVALID_OR_EXPIRED_OTP"
    assert (await get_user("carol@example.com")).is_verified is False


@pytest.mark.anyio
async def test_email_delivery_failure_returns_bad_gateway(client, outbox):
    await create_user("dave@example.com", verified=False)
    outbox.fail = True

    resp = await client.post(f"{API}/email-verification/request", json={"email": "dave@example.com"})
    assert resp.status_code == 502
    assert resp.json()["error_code"] == "EMAIL_DELIVERY_FAILED"


@pytest.mark.anyio
async def test_password_reset_flow(client, outbox):
    await create_user("erin@example.com")
    new_password = "brand-new-password"

    resp = await client.post(f"{API}/reset-password/request", json={"email": "erin@example.com"})
    assert resp.status_code == 200, resp.text
    record = await latest_otp("erin@example.com", "password_reset")

    # 未校验验证码不能直接重置
    resp = await client.post(f"{API}/reset-password", json={
        "email": "erin@example.com",
        "new_password": new_password,
        "new_password_confirmation": new_password,
    })
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "OTP_NOT_VERIFIED"

    resp = await client.post(f"{API}/reset-password/verify", json={
        "email": "erin@example.com",
        "otp": record.otp,
    })
    assert resp.status_code == 200, resp.text

    resp = await client.post(f"{API}/reset-password/verify", json={
        "email": "erin@example.com",
        "otp": record.otp,
    })
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "OTP_ALREADY_VERIFIED"

    resp = await client.post(f"{API}/reset-password", json={
        "email": "erin@example.com",
        "new_password": new_password,
        "new_password_confirmation": new_password,
    })
    assert resp.status_code == 200, resp.text

    await login(client, "erin@example.com", new_password)
    old = await client.post(f"{API}/login", json={"email": "erin@example.com", "password": PASSWORD})
    assert old.status_code == 401

    # 验证码已被删除，不能重复使用
    resp = await client.post(f"{API}/reset-password", json={
        "email": "erin@example.com",
        "new_password": "yet-another-password",
        "new_password_confirmation": "yet-another-password",
    })
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_reset_request_reissues_and_invalidates_old_code(client, outbox):
    await create_user("frank@example.com")

    await client.post(f"{API}/reset-password/request", json={"email": "frank@example.com"})
    first = (await latest_otp("frank@example.com", "password_reset")).otp
    await client.post(f"{API}/reset-password/request", json={"email": "frank@example.com"})
    second = (await latest_otp("frank@example.com", "password_reset")).otp

    assert len(outbox.messages) == 2
    if first != second:
        resp = await client.post(f"{API}/reset-password/verify", json={
            "email": "frank@example.com",
            "otp": first,
        })
        assert resp.status_code == 401

    resp = await client.post(f"{API}/reset-password/verify", json={
        "email": "frank@example.com",
        "otp": second,
    })
    assert resp.status_code == 200
