"""
Tool configuration
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings read from the process environment"""

    # Toolchain programs. Cargo exports CARGO to its subcommands.
    CARGO: str = "cargo"
    RUSTC: str = "rustc"

    # Profile merging tool, only looked up by `info`
    LLVM_PROFDATA: str = "llvm-profdata"

    class Config:
        case_sensitive = True


settings = Settings()
