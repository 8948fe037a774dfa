from whoisit.infra.auth.azure_cli_credential import AzureCliCredential
from whoisit.infra.auth.chained_credential import ChainedTokenCredential
from whoisit.infra.auth.environment_credential import EnvironmentCredential
from whoisit.infra.auth.interactive_credential import InteractiveBrowserCredential

__all__ = [
    "AzureCliCredential",
    "ChainedTokenCredential",
    "EnvironmentCredential",
    "InteractiveBrowserCredential",
]
