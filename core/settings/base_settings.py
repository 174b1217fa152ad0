from pydantic_settings import BaseSettings, SettingsConfigDict


class CartPilotBaseSettings(BaseSettings):
    """
    Base for every settings section.

    Fields are declared with the exact environment variable name as alias;
    ``populate_by_name`` lets code and tests build sections by field name.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )
