from .command_executor import run_shell_command
from .dependency_lookup import ChainLookup, DependencyLookup, LookupResult, PkgConfigLookup, StaticLookup
from .file_manager import download_and_extract, extract
