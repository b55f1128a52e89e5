"""Leaderboard configuration loaded from environment variables / .env"""
from decimal import Decimal
from typing import Optional

from eth_utils import is_address
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chain_leaderboard import variables
from chain_leaderboard.errors import ConfigurationError


class Settings(BaseSettings):
    """Static configuration for one leaderboard deployment"""
    # Required settings
    rpc_url: str = Field(..., description="JSON-RPC endpoint of the chain node")
    contract_address: str = Field(..., description="Contract emitting activity events and serving the enrichment read")

    # Activity (running-total) event
    activity_event: str = Field(variables.ACTIVITY_EVENT, description="Activity event signature")
    activity_participant_field: str = variables.ACTIVITY_PARTICIPANT_FIELD
    activity_value_field: str = variables.ACTIVITY_VALUE_FIELD

    # Settlement (delta) event, scanned only when a claims contract is configured
    claims_contract_address: Optional[str] = Field(None, description="Contract emitting settlement events")
    settlement_event: str = Field(variables.SETTLEMENT_EVENT, description="Settlement event signature")
    settlement_participant_field: str = variables.SETTLEMENT_PARTICIPANT_FIELD
    settlement_value_field: str = variables.SETTLEMENT_VALUE_FIELD

    enrichment_function: str = Field(variables.ENRICHMENT_FUNCTION, description="Per-participant view function")

    # Scan settings
    chunk_size: int = Field(variables.CHUNK_SIZE_BLOCKS, ge=1, description="Max blocks per eth_getLogs query")
    min_chunk_size: int = Field(variables.MIN_CHUNK_SIZE_BLOCKS, ge=1, description="Floor when halving a rejected chunk")
    deploy_block: int = Field(variables.DEPLOY_BLOCK, ge=0, description="Lower bound of the activity scan")
    claims_deploy_block: Optional[int] = Field(None, ge=0, description="Lower bound of the settlement scan")

    # Ranking settings
    unit_value: Decimal = Field(Decimal(variables.UNIT_VALUE_USD), ge=0, description="Dollar value per activity unit")
    row_cap: int = Field(variables.ROW_CAP, ge=0, description="Max leaderboard rows")

    # RPC settings
    rpc_timeout_s: float = Field(variables.RPC_TIMEOUT_S, gt=0)
    rpc_max_retries: int = Field(variables.RPC_MAX_RETRIES, ge=1)
    enrichment_workers: int = Field(variables.ENRICHMENT_WORKERS, ge=1)

    @field_validator("contract_address", "claims_contract_address")
    @classmethod
    def _normalize_address(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not is_address(value):
            raise ValueError(f"invalid address: {value}")
        return value.lower()

    @field_validator("rpc_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("rpc_url must not be empty")
        return value.strip()

    @property
    def settlement_deploy_block(self) -> int:
        if self.claims_deploy_block is None:
            return self.deploy_block
        return self.claims_deploy_block

    model_config = SettingsConfigDict(
        env_prefix='LEADERBOARD_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, letting keyword arguments win"""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = []
        for err in e.errors():
            field = ".".join(str(part) for part in err.get("loc", ())) or "settings"
            problems.append(f"{field}: {err.get('msg')}")
        raise ConfigurationError("invalid configuration: " + "; ".join(problems)) from e
