"""역할 레벨 상수 및 권한 판정 함수.

Role level constants and permission predicates.
Higher number = more authority. Every check is a plain integer comparison
so it can be used from services, dependencies and tests alike.

Levels:
    0 = user
    1 = trusted_user (자동 승급, 초대 코드 보유)
    3 = junior_mod
    5 = moderator
    7 = senior_mod
    10 = admin
"""

USER: int = 0
TRUSTED_USER: int = 1
JUNIOR_MOD: int = 3
MODERATOR: int = 5
SENIOR_MOD: int = 7
ADMIN: int = 10

ROLE_NAMES: dict[int, str] = {
    USER: "User",
    TRUSTED_USER: "Trusted User",
    JUNIOR_MOD: "Junior Moderator",
    MODERATOR: "Moderator",
    SENIOR_MOD: "Senior Moderator",
    ADMIN: "Admin",
}

# 오름차순 정렬된 레벨 목록 — Defined levels, ascending
ROLE_LEVELS: list[int] = sorted(ROLE_NAMES)

# 게시글 수 기준 신뢰 사용자 자동 승급 — Published posts needed for auto promotion
TRUSTED_USER_POST_THRESHOLD: int = 10

# 신뢰 사용자 승급 시 지급되는 초대 코드 수 — Invite codes granted on promotion
TRUSTED_USER_INVITE_CODES: int = 3


def can_moderate(role: int) -> bool:
    """신고 처리 등 검수 작업 가능 여부 (junior mod 이상)."""
    return role >= JUNIOR_MOD


def is_staff(role: int) -> bool:
    return role >= JUNIOR_MOD


def can_access_admin(role: int) -> bool:
    """관리자 대시보드 접근 가능 여부 (moderator 이상)."""
    return role >= MODERATOR


def can_manage_roles(role: int) -> bool:
    return role >= ADMIN


def can_assign_role(assigner_role: int, target_role: int) -> bool:
    """assigner가 target_role을 부여할 수 있는지 — admin만, 자기보다 낮은 역할만.

    Only admins assign roles, and never a role at or above their own.
    """
    return assigner_role >= ADMIN and target_role < assigner_role


def can_moderate_user(moderator_role: int, target_role: int) -> bool:
    """검수자가 대상 사용자를 제재할 수 있는지 — 대상보다 높은 레벨이어야 함."""
    return can_moderate(moderator_role) and moderator_role > target_role


def get_escalation_level(current_role: int) -> int | None:
    """현재 레벨에서 다음 에스컬레이션 레벨을 반환합니다.

    Next level up for escalation; senior mods and admins have none.
    """
    if current_role >= SENIOR_MOD:
        return None
    if current_role >= MODERATOR:
        return SENIOR_MOD
    if current_role >= JUNIOR_MOD:
        return MODERATOR
    return None


def get_escalation_targets(from_role: int) -> list[int]:
    """from_role보다 높은 에스컬레이션 대상 레벨 목록.

    Escalation targets strictly above from_role, lowest first.
    """
    return [level for level in (MODERATOR, SENIOR_MOD, ADMIN) if from_role < level]


def get_role_name(role: int) -> str:
    return ROLE_NAMES.get(get_role_level(role), "Unknown")


def get_role_level(role: int) -> int:
    """임의의 정수를 정의된 가장 가까운 하위 레벨로 내림합니다.

    Clamp an arbitrary integer down to the nearest defined level.
    Values below USER clamp to USER.
    """
    result: int = USER
    for level in ROLE_LEVELS:
        if role >= level:
            result = level
    return result


def get_all_roles() -> list[dict[str, int | str]]:
    return [{"level": level, "name": ROLE_NAMES[level]} for level in ROLE_LEVELS]


def get_assignable_roles(assigner_role: int) -> list[dict[str, int | str]]:
    """assigner가 부여 가능한 역할 목록 — Roles the assigner may hand out."""
    return [
        role for role in get_all_roles()
        if can_assign_role(assigner_role, int(role["level"]))
    ]
