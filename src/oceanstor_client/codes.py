"""Response codes and account states reported by the OceanStor REST API."""

from __future__ import annotations

from enum import IntEnum

SUCCESS = 0
NO_AUTHENTICATION = -401
OPERATION_FAILED = -1

SYSTEM_BUSY = 1077949006
SYSTEM_BUSY_ALT = 1077948995

FILESYSTEM_NOT_EXIST = 1073752065
FILESYSTEM_EXIST = 1077948993
CLONE_FILESYSTEM_NOT_EMPTY = 1073844244

PV_LABEL_EXIST = 1073754416
PV_LABEL_NOT_EXIST = 1073754399
POD_LABEL_EXIST = 1073754414
POD_LABEL_NOT_EXIST = 1073754412

DEFAULT_RETRY_CODES: frozenset[int] = frozenset({SYSTEM_BUSY, SYSTEM_BUSY_ALT})
FILESYSTEM_RETRY_CODES: frozenset[int] = frozenset({OPERATION_FAILED, SYSTEM_BUSY, SYSTEM_BUSY_ALT})


class AccountState(IntEnum):
    """Account state values returned by the session endpoint."""

    NORMAL = 1
    PASSWORD_EXPIRED = 3
    INITIAL_PASSWORD = 4
    PASSWORD_ABOUT_TO_EXPIRE = 5
    PASSWORD_MUST_CHANGE_NEXT_LOGIN = 6
    PASSWORD_NEVER_EXPIRES = 7
    AUTHENTICATE_EMAIL_ADDRESS = 8
    PASSWORD_NEEDS_INITIALIZATION = 9
    AUTHENTICATE_RADIUS = 10
    RADIUS_CHALLENGE_RESPONSE = 11


USABLE_ACCOUNT_STATES: frozenset[AccountState] = frozenset(
    {
        AccountState.NORMAL,
        AccountState.PASSWORD_ABOUT_TO_EXPIRE,
        AccountState.PASSWORD_MUST_CHANGE_NEXT_LOGIN,
        AccountState.PASSWORD_NEVER_EXPIRES,
    }
)

_ACCOUNT_STATE_DESCRIPTIONS: dict[int, str] = {
    AccountState.NORMAL: "normal",
    AccountState.PASSWORD_EXPIRED: "password expired",
    AccountState.INITIAL_PASSWORD: "initial password, which must be reset",
    AccountState.PASSWORD_ABOUT_TO_EXPIRE: "the password is about to expire",
    AccountState.PASSWORD_MUST_CHANGE_NEXT_LOGIN: "the password must be changed upon the next login",
    AccountState.PASSWORD_NEVER_EXPIRES: "the password never expires",
    AccountState.AUTHENTICATE_EMAIL_ADDRESS: "one-time password for authenticating the email address",
    AccountState.PASSWORD_NEEDS_INITIALIZATION: "first login, the password needs to be initialized",
    AccountState.AUTHENTICATE_RADIUS: "RADIUS one-time password authentication is required",
    AccountState.RADIUS_CHALLENGE_RESPONSE: "RADIUS challenge response is required",
}


def describe_account_state(state: float | int) -> str:
    """Return a human-readable label for an account state value."""

    if isinstance(state, float) and state.is_integer():
        state = int(state)
    return _ACCOUNT_STATE_DESCRIPTIONS.get(state, f"unknown account state {state}")  # type: ignore[arg-type]


def is_usable_account_state(state: float | int) -> bool:
    if isinstance(state, float):
        if not state.is_integer():
            return False
        state = int(state)
    return state in USABLE_ACCOUNT_STATES


__all__ = [
    "AccountState",
    "DEFAULT_RETRY_CODES",
    "FILESYSTEM_RETRY_CODES",
    "NO_AUTHENTICATION",
    "SUCCESS",
    "USABLE_ACCOUNT_STATES",
    "describe_account_state",
    "is_usable_account_state",
]
