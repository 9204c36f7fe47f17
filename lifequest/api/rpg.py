"""RPG API endpoints.

Every mutating route holds the character's lock for the whole service call,
so one character's operations never interleave.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from lifequest.api.schemas import (
    AchievementInfo,
    AchievementRequest,
    ActivityXpRequest,
    BattleTurnInfo,
    BattleTurnRequest,
    BattleTurnResponse,
    CharacterResponse,
    CollectTruthRequest,
    EncounterInfo,
    EnsureCharacterRequest,
    EquipTruthRequest,
    ErrorResponse,
    GenerateQuestsRequest,
    GrantResultResponse,
    GrantXpRequest,
    LevelInfoSchema,
    LogEntryInfo,
    PerkInfo,
    PerkPointsInfo,
    PerkPointsRequest,
    PerkUnlockInfo,
    QuestInfo,
    QuestlineInfo,
    QuestlineProgressInfo,
    QuestProgressInfo,
    QuestProgressRequest,
    SecondaryStatsSchema,
    SkillTreeInfo,
    SpawnEncounterRequest,
    SpawnTriggerRequest,
    StatInfo,
    TruthInfo,
)
from lifequest.core.errors import (
    EngineError,
    InvalidInputError,
    NotFoundError,
    PreconditionNotMetError,
)
from lifequest.core.locks import CharacterLocks
from lifequest.core.logging import get_logger
from lifequest.core.progression.curve import stat_level_from_xp
from lifequest.core.progression.enums import STAT_NAMES
from lifequest.core.quest.enums import QuestScope
from lifequest.db.database import get_db
from lifequest.services.battle_service import BattleService
from lifequest.services.container import Services, build_services
from lifequest.services.log_service import LogService
from lifequest.services.progression_service import ProgressionService
from lifequest.services.quest_service import QuestService
from lifequest.services.skill_tree_service import SkillTreeService
from lifequest.services.truth_service import TruthService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/rpg",
    tags=["rpg"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


# === Error mapping ===


def status_for(error: EngineError) -> int:
    if isinstance(error, InvalidInputError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, PreconditionNotMetError):
        return 409
    return 500


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Registered on the app for EngineError."""
    status = status_for(exc)
    log = logger.error if status >= 500 else logger.warning
    log(
        "%s %s -> %d %s: %s",
        request.method,
        request.url.path,
        status,
        exc.code,
        exc.message,
    )
    return JSONResponse(
        status_code=status,
        content={"detail": exc.message, "code": exc.code},
    )


# === Dependencies ===


def get_services(request: Request, db: Session = Depends(get_db)) -> Services:
    """Services for this request, sharing its session and a fresh bus.

    FastAPI caches the result per request, so every service dependency of
    one route sees the same instances.
    """
    state = request.app.state
    return build_services(db, state.catalogs, state.clock, state.rng)


def get_progression_service(
    services: Services = Depends(get_services),
) -> ProgressionService:
    return services.progression


def get_skill_tree_service(
    services: Services = Depends(get_services),
) -> SkillTreeService:
    return services.skill_trees


def get_quest_service(services: Services = Depends(get_services)) -> QuestService:
    return services.quests


def get_battle_service(services: Services = Depends(get_services)) -> BattleService:
    return services.battles


def get_truth_service(services: Services = Depends(get_services)) -> TruthService:
    return services.truths


def get_log_service(services: Services = Depends(get_services)) -> LogService:
    return services.log


def get_locks(request: Request) -> CharacterLocks:
    locks: CharacterLocks = request.app.state.character_locks
    return locks


# === Builders ===


def _build_character(
    progression: ProgressionService,
    skill_trees: SkillTreeService,
    character_id: str,
) -> CharacterResponse:
    character = progression.get_character(character_id)
    if character is None:
        raise NotFoundError(f"Character not found: {character_id}")
    level = progression.get_level_info(character_id)
    secondary = progression.get_secondary_stats(character_id)
    points = skill_trees.get_perk_points(character_id)

    stats = []
    for track in progression.get_stat_tracks(character_id):
        info = stat_level_from_xp(track.total_xp)
        stats.append(
            StatInfo(
                stat=track.stat.value,
                name=STAT_NAMES[track.stat],
                total_xp=track.total_xp,
                level=track.level,
                current_level_xp=info.current_level_xp,
                next_level_xp=info.next_level_xp,
            )
        )

    return CharacterResponse(
        character_id=character.character_id,
        total_xp=character.total_xp,
        title=character.title,
        aura_color=character.aura_color,
        gear=character.gear,
        level=LevelInfoSchema(
            level=level.level,
            current_level_xp=level.current_level_xp,
            next_level_xp=level.next_level_xp,
            progress=level.progress,
        ),
        stats=stats,
        secondary=SecondaryStatsSchema(
            hp=secondary.hp,
            energy=secondary.energy,
            crit=secondary.crit,
            resistance=secondary.resistance,
            initiative=secondary.initiative,
        ),
        perk_points_available=points.available,
        perk_points_earned=points.total_earned,
    )


def _build_grant(result) -> GrantResultResponse:
    return GrantResultResponse(
        character_id=result.character_id,
        xp_granted=result.xp_granted,
        old_level=result.old_level,
        new_level=result.new_level,
        leveled_up=result.leveled_up,
        stat_level_ups=[
            {"stat": u.stat.value, "old_level": u.old_level, "new_level": u.new_level}
            for u in result.stat_level_ups
        ],
        perk_points_earned=result.perk_points_earned,
        duplicate=result.duplicate,
    )


def _build_quest(quest) -> QuestInfo:
    return QuestInfo(
        quest_id=quest.quest_id,
        scope=quest.scope.value,
        period_key=quest.period_key,
        catalog_id=quest.catalog_id,
        name=quest.name,
        description=quest.description,
        source_module=quest.source_module,
        source_action=quest.source_action,
        target_count=quest.target_count,
        current_count=quest.current_count,
        xp_reward={s.value: xp for s, xp in quest.xp_reward.items()},
        status=quest.status.value,
        completed_at=quest.completed_at,
    )


def _build_questline(questline) -> QuestlineInfo:
    return QuestlineInfo(
        questline_id=questline.questline_id,
        name=questline.name,
        current_step=questline.current_step,
        total_steps=questline.total_steps,
        status=questline.status.value,
        completed_at=questline.completed_at,
    )


def _build_questline_progress(result) -> QuestlineProgressInfo:
    return QuestlineProgressInfo(
        questline=_build_questline(result.questline),
        advanced=result.advanced,
        completed=result.completed,
    )


def _build_perk(perk, state=None, unmet=()) -> PerkInfo:
    req = perk.requirement
    return PerkInfo(
        number=perk.number,
        name=perk.name,
        effect=perk.effect,
        perk_type=perk.perk_type.value,
        skill_name=perk.skill_name,
        skill_energy_cost=perk.skill_energy_cost,
        requires_perks=list(req.perks),
        requires_level=req.min_level,
        requires_stats={s.value: v for s, v in req.min_stats.items()},
        state=state.value if state is not None else None,
        unmet=list(unmet),
    )


def _build_encounter(encounter) -> EncounterInfo:
    return EncounterInfo(
        encounter_id=encounter.encounter_id,
        character_id=encounter.character_id,
        enemy_id=encounter.enemy_id,
        enemy_name=encounter.enemy_name,
        difficulty=encounter.difficulty.value,
        status=encounter.status.value,
        enemy_hp=encounter.enemy_hp,
        enemy_max_hp=encounter.enemy_max_hp,
        enemy_power=encounter.enemy_power,
        enemy_defense=encounter.enemy_defense,
        character_hp=encounter.character_hp,
        character_max_hp=encounter.character_max_hp,
        character_energy=encounter.character_energy,
        character_max_energy=encounter.character_max_energy,
        turns_elapsed=encounter.turns_elapsed,
        expires_at=encounter.expires_at,
    )


def _build_turn(turn) -> BattleTurnInfo:
    return BattleTurnInfo(
        turn_number=turn.turn_number,
        action=turn.action.value,
        enemy_move=turn.enemy_move,
        damage_dealt=turn.damage_dealt,
        damage_taken=turn.damage_taken,
        character_hp_after=turn.character_hp_after,
        enemy_hp_after=turn.enemy_hp_after,
        character_energy_after=turn.character_energy_after,
        result_flags=list(turn.result_flags),
    )


def _build_truth(truth) -> TruthInfo:
    return TruthInfo(
        truth_id=truth.truth_id,
        text=truth.text,
        source_entry_id=truth.source_entry_id,
        theme=truth.theme,
        equipped=truth.equipped,
        battle_effect=truth.battle_effect,
        battle_power=truth.battle_power,
        collected_at=truth.collected_at,
    )


# === Character & XP ===


@router.post("/characters", response_model=CharacterResponse)
def ensure_character(
    body: EnsureCharacterRequest,
    progression: ProgressionService = Depends(get_progression_service),
    skill_trees: SkillTreeService = Depends(get_skill_tree_service),
    locks: CharacterLocks = Depends(get_locks),
) -> CharacterResponse:
    """Create the character on first access, return its sheet."""
    with locks.hold(body.character_id):
        progression.ensure_character(body.character_id)
        return _build_character(progression, skill_trees, body.character_id)


@router.get("/characters/{character_id}", response_model=CharacterResponse)
def get_character(
    character_id: str,
    progression: ProgressionService = Depends(get_progression_service),
    skill_trees: SkillTreeService = Depends(get_skill_tree_service),
) -> CharacterResponse:
    return _build_character(progression, skill_trees, character_id)


@router.post("/characters/{character_id}/xp", response_model=GrantResultResponse)
def grant_xp(
    character_id: str,
    body: GrantXpRequest,
    progression: ProgressionService = Depends(get_progression_service),
    locks: CharacterLocks = Depends(get_locks),
) -> GrantResultResponse:
    with locks.hold(character_id):
        result = progression.grant_xp(
            character_id,
            body.source_module,
            body.source_action,
            body.source_item_id,
            body.primary_stat,
            body.primary_xp,
            body.secondary_stat,
            body.secondary_xp,
        )
    return _build_grant(result)


@router.post("/characters/{character_id}/activity", response_model=GrantResultResponse)
def grant_activity_xp(
    character_id: str,
    body: ActivityXpRequest,
    progression: ProgressionService = Depends(get_progression_service),
    locks: CharacterLocks = Depends(get_locks),
) -> GrantResultResponse:
    """XP from the activity reward table."""
    with locks.hold(character_id):
        result = progression.grant_activity_xp(
            character_id, body.source_module, body.source_action, body.source_item_id
        )
    return _build_grant(result)


@router.get(
    "/characters/{character_id}/achievements", response_model=list[AchievementInfo]
)
def get_achievements(
    character_id: str,
    progression: ProgressionService = Depends(get_progression_service),
) -> list[AchievementInfo]:
    return [
        AchievementInfo(
            name=a.name,
            description=a.description,
            icon=a.icon,
            unlocked_at=a.unlocked_at,
        )
        for a in progression.get_achievements(character_id)
    ]


@router.post("/characters/{character_id}/achievements")
def unlock_achievement(
    character_id: str,
    body: AchievementRequest,
    progression: ProgressionService = Depends(get_progression_service),
    locks: CharacterLocks = Depends(get_locks),
) -> dict[str, bool]:
    with locks.hold(character_id):
        achievement = progression.unlock_achievement(
            character_id, body.name, body.description, body.icon
        )
    return {"unlocked": achievement is not None}


# === Quests ===


@router.post(
    "/characters/{character_id}/quests/generate", response_model=list[QuestInfo]
)
def generate_quests(
    character_id: str,
    body: GenerateQuestsRequest,
    quests: QuestService = Depends(get_quest_service),
    locks: CharacterLocks = Depends(get_locks),
) -> list[QuestInfo]:
    """Ensure the period's quests exist; returns only the new ones."""
    try:
        scope = QuestScope(body.scope)
    except ValueError:
        raise InvalidInputError(f"Unknown quest scope: {body.scope}") from None

    with locks.hold(character_id):
        if scope == QuestScope.DAILY:
            created = quests.generate_daily_quests(character_id, body.as_of)
        else:
            created = quests.generate_weekly_quests(character_id, body.as_of)
    return [_build_quest(q) for q in created]


@router.get("/characters/{character_id}/quests", response_model=list[QuestInfo])
def list_quests(
    character_id: str,
    scope: Optional[str] = None,
    status: Optional[str] = None,
    quests: QuestService = Depends(get_quest_service),
) -> list[QuestInfo]:
    try:
        found = quests.get_quests(character_id, scope=scope, status=status)
    except ValueError as e:
        raise InvalidInputError(str(e)) from None
    return [_build_quest(q) for q in found]


@router.post(
    "/characters/{character_id}/quests/progress",
    response_model=list[QuestProgressInfo],
)
def progress_quest(
    character_id: str,
    body: QuestProgressRequest,
    quests: QuestService = Depends(get_quest_service),
    locks: CharacterLocks = Depends(get_locks),
) -> list[QuestProgressInfo]:
    with locks.hold(character_id):
        results = quests.progress_quest(
            character_id, body.source_module, body.source_action
        )
    return [
        QuestProgressInfo(
            quest=_build_quest(r.quest),
            completed=r.completed,
            questline_updates=[
                _build_questline_progress(u) for u in r.questline_updates
            ],
        )
        for r in results
    ]


@router.get(
    "/characters/{character_id}/questlines", response_model=list[QuestlineInfo]
)
def list_questlines(
    character_id: str,
    quests: QuestService = Depends(get_quest_service),
) -> list[QuestlineInfo]:
    return [_build_questline(q) for q in quests.get_questlines(character_id)]


@router.post(
    "/characters/{character_id}/questlines/{questline_id}/start",
    response_model=QuestlineInfo,
)
def start_questline(
    character_id: str,
    questline_id: str,
    quests: QuestService = Depends(get_quest_service),
    locks: CharacterLocks = Depends(get_locks),
) -> QuestlineInfo:
    with locks.hold(character_id):
        questline = quests.start_questline(character_id, questline_id)
    return _build_questline(questline)


@router.post(
    "/characters/{character_id}/questlines/{questline_id}/advance",
    response_model=QuestlineProgressInfo,
)
def advance_questline(
    character_id: str,
    questline_id: str,
    quests: QuestService = Depends(get_quest_service),
    locks: CharacterLocks = Depends(get_locks),
) -> QuestlineProgressInfo:
    with locks.hold(character_id):
        result = quests.advance_questline(character_id, questline_id)
    return _build_questline_progress(result)


# === Skill trees ===


@router.get("/skill-trees", response_model=list[SkillTreeInfo])
def list_skill_trees(
    skill_trees: SkillTreeService = Depends(get_skill_tree_service),
) -> list[SkillTreeInfo]:
    return [
        SkillTreeInfo(
            tree_id=t.tree_id,
            name=t.name,
            stats=[s.value for s in t.stats],
            perks=[_build_perk(p) for p in t.perks],
        )
        for t in skill_trees.get_skill_trees()
    ]


@router.get(
    "/characters/{character_id}/skill-trees/{tree_id}",
    response_model=list[PerkInfo],
)
def get_skill_tree(
    character_id: str,
    tree_id: str,
    skill_trees: SkillTreeService = Depends(get_skill_tree_service),
) -> list[PerkInfo]:
    """Each perk with its locked/available/unlocked state."""
    return [
        _build_perk(v.perk, v.state, v.unmet)
        for v in skill_trees.get_skill_tree(character_id, tree_id)
    ]


@router.post(
    "/characters/{character_id}/skill-trees/{tree_id}/perks/{perk_number}/unlock",
    response_model=PerkUnlockInfo,
)
def unlock_perk(
    character_id: str,
    tree_id: str,
    perk_number: int,
    skill_trees: SkillTreeService = Depends(get_skill_tree_service),
    locks: CharacterLocks = Depends(get_locks),
) -> PerkUnlockInfo:
    with locks.hold(character_id):
        unlock = skill_trees.unlock_perk(character_id, tree_id, perk_number)
    return PerkUnlockInfo(
        tree_id=unlock.tree_id,
        perk_number=unlock.perk_number,
        unlocked_at=unlock.unlocked_at,
    )


@router.post(
    "/characters/{character_id}/perk-points", response_model=PerkPointsInfo
)
def award_perk_points(
    character_id: str,
    body: PerkPointsRequest,
    skill_trees: SkillTreeService = Depends(get_skill_tree_service),
    locks: CharacterLocks = Depends(get_locks),
) -> PerkPointsInfo:
    with locks.hold(character_id):
        points = skill_trees.award_perk_points(character_id, body.amount)
    return PerkPointsInfo(available=points.available, total_earned=points.total_earned)


# === Battle ===


@router.post(
    "/characters/{character_id}/encounters", response_model=EncounterInfo
)
def spawn_encounter(
    character_id: str,
    body: SpawnEncounterRequest,
    battles: BattleService = Depends(get_battle_service),
    locks: CharacterLocks = Depends(get_locks),
) -> EncounterInfo:
    with locks.hold(character_id):
        encounter = battles.spawn_encounter(
            character_id, body.enemy_id, body.source_action
        )
    return _build_encounter(encounter)


@router.post(
    "/characters/{character_id}/encounters/triggered",
    response_model=list[EncounterInfo],
)
def spawn_triggered_encounters(
    character_id: str,
    body: SpawnTriggerRequest,
    battles: BattleService = Depends(get_battle_service),
    locks: CharacterLocks = Depends(get_locks),
) -> list[EncounterInfo]:
    """Called by the host after an activity; may spawn nothing."""
    with locks.hold(character_id):
        encounters = battles.spawn_for_trigger(character_id, body.trigger)
    return [_build_encounter(e) for e in encounters]


@router.get(
    "/characters/{character_id}/encounters", response_model=list[EncounterInfo]
)
def list_open_encounters(
    character_id: str,
    battles: BattleService = Depends(get_battle_service),
) -> list[EncounterInfo]:
    return [_build_encounter(e) for e in battles.get_open_encounters(character_id)]


def _encounter_owner(battles: BattleService, encounter_id: str) -> str:
    encounter = battles.get_encounter(encounter_id)
    if encounter is None:
        raise NotFoundError(f"Encounter not found: {encounter_id}")
    return encounter.character_id


@router.get("/encounters/{encounter_id}", response_model=EncounterInfo)
def get_encounter(
    encounter_id: str,
    battles: BattleService = Depends(get_battle_service),
) -> EncounterInfo:
    encounter = battles.get_encounter(encounter_id)
    if encounter is None:
        raise NotFoundError(f"Encounter not found: {encounter_id}")
    return _build_encounter(encounter)


@router.post("/encounters/{encounter_id}/start", response_model=EncounterInfo)
def start_encounter(
    encounter_id: str,
    battles: BattleService = Depends(get_battle_service),
    locks: CharacterLocks = Depends(get_locks),
) -> EncounterInfo:
    with locks.hold(_encounter_owner(battles, encounter_id)):
        encounter = battles.start_encounter(encounter_id)
    return _build_encounter(encounter)


@router.post("/encounters/{encounter_id}/turns", response_model=BattleTurnResponse)
def execute_battle_turn(
    encounter_id: str,
    body: BattleTurnRequest,
    battles: BattleService = Depends(get_battle_service),
    locks: CharacterLocks = Depends(get_locks),
) -> BattleTurnResponse:
    """Resolve one turn; omit random_draw to let the server roll."""
    with locks.hold(_encounter_owner(battles, encounter_id)):
        result = battles.execute_battle_turn(
            encounter_id, body.action, body.random_draw
        )
    return BattleTurnResponse(
        turn=_build_turn(result.turn),
        encounter=_build_encounter(result.encounter),
        victory=result.victory,
        defeat=result.defeat,
    )


@router.get("/encounters/{encounter_id}/turns", response_model=list[BattleTurnInfo])
def list_battle_turns(
    encounter_id: str,
    battles: BattleService = Depends(get_battle_service),
) -> list[BattleTurnInfo]:
    return [_build_turn(t) for t in battles.get_battle_turns(encounter_id)]


# === Truths ===


@router.post("/characters/{character_id}/truths", response_model=TruthInfo)
def collect_truth(
    character_id: str,
    body: CollectTruthRequest,
    truths: TruthService = Depends(get_truth_service),
    locks: CharacterLocks = Depends(get_locks),
) -> TruthInfo:
    with locks.hold(character_id):
        truth = truths.collect_truth(
            character_id, body.text, body.source_entry_id, body.theme
        )
    return _build_truth(truth)


@router.get("/characters/{character_id}/truths", response_model=list[TruthInfo])
def list_truths(
    character_id: str,
    equipped: bool = False,
    truths: TruthService = Depends(get_truth_service),
) -> list[TruthInfo]:
    found = (
        truths.get_equipped_truths(character_id)
        if equipped
        else truths.get_truths(character_id)
    )
    return [_build_truth(t) for t in found]


@router.post("/truths/{truth_id}/equip", response_model=TruthInfo)
def toggle_truth_equip(
    truth_id: str,
    body: EquipTruthRequest,
    truths: TruthService = Depends(get_truth_service),
    locks: CharacterLocks = Depends(get_locks),
) -> TruthInfo:
    truth = truths.get_truth(truth_id)
    if truth is None:
        raise NotFoundError(f"Truth not found: {truth_id}")
    with locks.hold(truth.character_id):
        truth = truths.toggle_truth_equip(truth_id, body.equip)
    return _build_truth(truth)


# === Activity log ===


@router.get("/characters/{character_id}/log", response_model=list[LogEntryInfo])
def get_recent_log(
    character_id: str,
    limit: int = 50,
    log_type: Optional[str] = None,
    log: LogService = Depends(get_log_service),
) -> list[LogEntryInfo]:
    return [
        LogEntryInfo(
            entry_id=e.entry_id,
            log_type=e.log_type.value,
            title=e.title,
            description=e.description,
            data=e.data,
            timestamp=e.timestamp,
        )
        for e in log.get_recent_log(character_id, limit=limit, log_type=log_type)
    ]
