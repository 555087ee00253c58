"""
Demo data generator for csftracker.

Generates plausible sample controls for demonstrations, evaluation and
tests. Output is reproducible: the same seed, profile, count and reference
date always produce the same controls.

Profiles:
    - startup: Small company, basic security, many gaps
    - growing: Mid-size company, moderate security, some gaps
    - mature: Large company, strong security, few gaps

Generated controls follow three rules:
    - Owners are assigned in contiguous blocks (first half to the first
      owner, second half to the second)
    - Compliant controls are always Completed
    - Non-compliant controls always carry identified risks
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any

from csftracker.nist import NistCategory, get_all_categories, get_function
from csftracker.storage.control_store import ControlStore
from csftracker.storage.models import Control, MeetsCriteria, Priority, RemediationStatus

logger = logging.getLogger(__name__)


class DemoProfile(Enum):
    """Demo organization profiles with different compliance levels."""

    STARTUP = "startup"  # Low compliance, many gaps
    GROWING = "growing"  # Medium compliance, moderate gaps
    MATURE = "mature"  # High compliance, few gaps


# Probability that a generated control meets criteria
COMPLIANCE_PROBABILITY = {
    DemoProfile.STARTUP: 0.35,
    DemoProfile.GROWING: 0.6,
    DemoProfile.MATURE: 0.85,
}

# Priority weights [High, Medium, Low] by profile
PRIORITY_WEIGHTS = {
    DemoProfile.STARTUP: [0.45, 0.35, 0.20],
    DemoProfile.GROWING: [0.33, 0.34, 0.33],
    DemoProfile.MATURE: [0.20, 0.35, 0.45],
}

DEFAULT_OWNERS = ("Acme Corporation", "Contoso Corporation")

DEFAULT_CONTROL_COUNT = 50

DOMAINS = (
    "Access Control",
    "Asset Management",
    "Data Protection",
    "Incident Response",
    "Risk Management",
    "Vulnerability Management",
    "Security Governance",
    "Network Security",
    "Application Security",
    "Cloud Security",
)

# Days back from the reference date that last_updated may fall on
HISTORY_DAYS = 30


@dataclass
class DemoConfig:
    """Configuration for demo data generation."""

    profile: DemoProfile = DemoProfile.GROWING
    count: int = DEFAULT_CONTROL_COUNT
    owners: tuple[str, ...] = DEFAULT_OWNERS
    seed: int | None = None
    reference_date: datetime | None = None
    domains: tuple[str, ...] = DOMAINS


class DemoGenerator:
    """
    Generates sample NIST CSF controls.

    Example:
        generator = DemoGenerator(DemoConfig(profile=DemoProfile.STARTUP, seed=7))
        controls = generator.generate_controls()

        # Or straight into a store
        summary = generator.generate(ControlStore(), replace=True)
    """

    def __init__(self, config: DemoConfig | None = None) -> None:
        """
        Initialize demo generator.

        Args:
            config: Demo configuration. Defaults to the growing profile.

        Raises:
            ValueError: If count is negative or no owners are given.
        """
        self.config = config or DemoConfig()
        if self.config.count < 0:
            raise ValueError(f"count must not be negative, got {self.config.count}")
        if not self.config.owners:
            raise ValueError("At least one owner is required")

        self._rng = random.Random(self.config.seed)
        self._categories = get_all_categories()

    def _reference_date(self) -> datetime:
        if self.config.reference_date is not None:
            ref = self.config.reference_date
            return ref if ref.tzinfo else ref.replace(tzinfo=UTC)
        # Midnight today, so a seed gives the same records all day
        now = datetime.now(UTC)
        return now.replace(hour=0, minute=0, second=0, microsecond=0)

    def _owner_for(self, index: int) -> str:
        owners = self.config.owners
        block = max(1, math.ceil(self.config.count / len(owners)))
        return owners[min(index // block, len(owners) - 1)]

    def _make_control(self, index: int, category: NistCategory, reference: datetime) -> Control:
        rng = self._rng
        profile = self.config.profile
        function = get_function(category.function_id)
        function_name = function.name if function else category.function_id

        sub_number = rng.randint(1, 6)
        domain = rng.choice(self.config.domains)
        priority = rng.choices(list(Priority), weights=PRIORITY_WEIGHTS[profile])[0]
        compliant = rng.random() < COMPLIANCE_PROBABILITY[profile]

        if compliant:
            meets = MeetsCriteria.YES
            status = RemediationStatus.COMPLETED
            risks = ""
            details = ""
        else:
            meets = MeetsCriteria.NO
            status = rng.choice([RemediationStatus.NOT_STARTED, RemediationStatus.IN_PROGRESS])
            risks = f"Risks identified in {domain} area"
            details = (
                f"Detailed analysis of risks in the {domain} domain "
                f"related to {category.name} controls."
            )

        last_updated = reference - timedelta(seconds=rng.randint(0, HISTORY_DAYS * 86400))

        return Control(
            owner=self._owner_for(index),
            nist_function=function_name,
            nist_category_id=category.label,
            nist_subcategory_id=f"{category.id}-{sub_number:02d} - {category.name} Subcategory {sub_number}",
            assessment_priority=priority,
            control_description=(
                f"Sample control {index + 1}. This control is part of the {function_name} "
                f"function and {category.name} category. It focuses on {domain} aspects "
                f"of cybersecurity."
            ),
            cybersecurity_domain=domain,
            meets_criteria=meets,
            identified_risks=risks,
            risk_details=details,
            remediation_status=status,
            last_updated=last_updated,
        )

    def generate_controls(self) -> list[Control]:
        """
        Generate the configured number of controls.

        Categories are cycled in framework order so every function is
        represented once count reaches the number of categories.

        Returns:
            Controls without ids, ready for ControlStore.insert_many().
        """
        self._rng = random.Random(self.config.seed)
        reference = self._reference_date()
        controls = [
            self._make_control(i, self._categories[i % len(self._categories)], reference)
            for i in range(self.config.count)
        ]
        logger.debug(
            f"Generated {len(controls)} {self.config.profile.value} demo controls"
        )
        return controls

    def generate(self, store: ControlStore, replace: bool = False) -> dict[str, Any]:
        """
        Generate controls and write them to a store.

        Args:
            store: Destination store.
            replace: Replace every stored control instead of adding.

        Returns:
            Summary of generated data.
        """
        logger.info(f"Generating demo data for profile: {self.config.profile.value}")
        controls = self.generate_controls()

        if replace:
            stored = store.replace_all(controls)
        else:
            stored = store.insert_many(controls)

        by_owner: dict[str, int] = {}
        for control in stored:
            by_owner[control.owner] = by_owner.get(control.owner, 0) + 1
        compliant = sum(1 for c in stored if c.is_compliant)

        for owner, count in by_owner.items():
            logger.info(f"- {owner}: {count} controls")

        return {
            "profile": self.config.profile.value,
            "seed": self.config.seed,
            "controls": len(stored),
            "compliant": compliant,
            "non_compliant": len(stored) - compliant,
            "by_owner": by_owner,
            "replaced": replace,
        }


def generate_demo_data(
    profile: str | DemoProfile = DemoProfile.GROWING,
    count: int = DEFAULT_CONTROL_COUNT,
    seed: int | None = None,
    owners: tuple[str, ...] | None = None,
    data_dir: Path | None = None,
    replace: bool = False,
) -> dict[str, Any]:
    """
    Generate demo data with a single function call.

    Args:
        profile: Demo profile ("startup", "growing", "mature") or DemoProfile enum.
        count: Number of controls to generate.
        seed: Random seed for reproducible output.
        owners: Owner names. Defaults to Acme and Contoso.
        data_dir: Data directory. Defaults to ~/.csftracker/data.
        replace: Replace existing controls instead of adding to them.

    Returns:
        Summary of generated data.

    Example:
        # 50 controls for a growing company
        summary = generate_demo_data(profile="growing", seed=42)

        # Replace everything with a startup's controls
        summary = generate_demo_data(profile="startup", replace=True)
    """
    if isinstance(profile, str):
        profile = DemoProfile(profile.lower())

    config = DemoConfig(
        profile=profile,
        count=count,
        owners=owners or DEFAULT_OWNERS,
        seed=seed,
    )

    generator = DemoGenerator(config=config)
    return generator.generate(ControlStore(data_dir=data_dir), replace=replace)
