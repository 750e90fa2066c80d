"""Core trailcoach wiring: configuration, storage, providers and services."""

import datetime
from typing import Any

import requests

from .aggregator import ActivityAggregator, integration_states
from .appconfig import get_current_date, load_config, setting
from .coach import CoachClient
from .database import get_all_models, migrate_tables
from .db import configure_db, get_db, get_db_path_from_env
from .nutrition import Meal, NutritionDay, NutritionLog, NutritionPlanDay
from .oauth import OAuthFlow
from .plan import PlanStore, next_workout
from .profile import UserProfile, load_profile, save_profile
from .provider_status import Provider
from .providers import ActivityProvider, build_providers
from .storage import DatabaseRepository, StateRepository
from .token_store import TokenStore

DEFAULT_NUTRITION_FOCUS = "Endurance and Recovery"


class Trailcoach:
    """Builds every service from one configuration and one repository.

    With no repository given, the peewee database is configured (from
    ``DATABASE_URL`` or ``TRAILCOACH_DB``), migrated, and used for storage.
    """

    def __init__(
        self,
        repository: StateRepository | None = None,
        config: dict[str, Any] | None = None,
        session: requests.Session | None = None,
    ):
        if repository is None:
            configure_db(get_db_path_from_env())
            get_db().connect(reuse_if_open=True)
            migrate_tables(get_all_models())
            repository = DatabaseRepository()
        self.repository = repository
        self.config = config if config is not None else load_config()

        self.tokens = TokenStore(self.repository)
        self.providers: list[ActivityProvider] = build_providers(self.tokens, self.config)
        self.states = integration_states(self.tokens)
        self.aggregator = ActivityAggregator(self.providers, self.states)
        self.oauth = OAuthFlow(self.providers, self.states)

        timeout = int(setting(self.config, "http_timeout"))
        self.coach = CoachClient(str(setting(self.config, "ai_base_url")), session=session, timeout=timeout)
        self.plans = PlanStore(self.repository, self.coach)

    @property
    def today(self) -> datetime.date:
        return get_current_date(self.config)

    @property
    def profile(self) -> UserProfile:
        return load_profile(self.repository)

    @property
    def nutrition(self) -> NutritionLog:
        return NutritionLog(self.repository, self.today)

    def get_provider(self, provider: Provider) -> ActivityProvider:
        return next(p for p in self.providers if p.provider == provider)

    def update_profile(self, **changes: Any) -> UserProfile:
        """Apply *changes* (UserProfile field names) and persist the result.

        Raises ValueError when the race date is not an ISO date.
        """
        profile = self.profile._replace(**changes)
        datetime.date.fromisoformat(profile.race_date)
        save_profile(self.repository, profile)
        return profile

    def log_meal(self, food_log: str) -> tuple[Meal, NutritionDay]:
        """Have the coach estimate *food_log* and add it to today's log."""
        meal = self.coach.analyze_meal(food_log)
        return meal, self.nutrition.add_meal(meal)

    def nutrition_plan(self, regenerate: bool = False) -> list[NutritionPlanDay]:
        """The stored nutrition plan; asks the coach when none is stored or on *regenerate*."""
        nutrition = self.nutrition
        days = nutrition.plan()
        if days and not regenerate:
            return days
        plan = self.plans.current()
        days = self.coach.nutrition_plan(plan.focus if plan else DEFAULT_NUTRITION_FOCUS)
        nutrition.save_plan(days)
        return days

    def ask_coach(self, query: str) -> str:
        plan = self.plans.current()
        if plan is None:
            context = "No training plan yet."
        else:
            session = next_workout(plan, self.today)
            context = f"Current plan focus: {plan.focus}. Selected day: {session.day if session else 'None'}."
        return self.coach.coach_advice(query, context)

    def cleanup(self):
        """Close the database connection if one was opened."""
        try:
            db = get_db()
            if not db.is_closed():
                db.close()
        except RuntimeError:
            pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.cleanup()
