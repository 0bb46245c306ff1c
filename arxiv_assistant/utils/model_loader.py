import os
import sys
from typing import Optional

from dotenv import load_dotenv
from langchain_google_genai import ChatGoogleGenerativeAI, GoogleGenerativeAIEmbeddings
from langchain_groq import ChatGroq

from arxiv_assistant.exception.custom_exception import ArxivAssistantException
from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.utils.config_loader import load_config

# provider name -> environment variable holding its key
PROVIDER_KEYS = {
    "google": "GOOGLE_API_KEY",
    "groq": "GROQ_API_KEY",
}

OPTIONAL_KEYS = ["UNSTRUCTURED_API_KEY"]


def required_keys_for(config: dict) -> list[str]:
    """Only the providers actually referenced in the config need a key."""
    providers = {config.get("embedding_model", {}).get("provider", "google")}
    providers.update(role.get("provider") for role in config.get("llm", {}).values())
    return sorted(PROVIDER_KEYS[p] for p in providers if p in PROVIDER_KEYS)


class ApiKeyManager:
    def __init__(self, required: list[str]):
        load_dotenv()
        self.required = required
        self.keys = {}

        for k in self.required:
            if val := os.getenv(k):
                self.keys[k] = val
                log.info("Loaded %s from env", k)
            else:
                log.error("Missing required API key: %s", k)

        if len(self.keys) != len(self.required):
            raise ArxivAssistantException("Missing API Keys", sys)

        for k in OPTIONAL_KEYS:
            if val := os.getenv(k):
                self.keys[k] = val

    def get(self, key: str) -> str:
        return self.keys[key]

    def get_optional(self, key: str) -> Optional[str]:
        return self.keys.get(key)


class ModelLoader:
    """
    Responsible for:
    - Loading embeddings
    - Loading the role based chat models (notes, qa, rephrase, examples)
    """

    def __init__(self, config: Optional[dict] = None):
        self.config = config or load_config()
        log.info("YAML config loaded | config_keys=%s", list(self.config.keys()))

        self.api_key_mgr = ApiKeyManager(required_keys_for(self.config))
        self.api_keys = self.api_key_mgr.keys

    def load_embeddings(self):
        """
        Load and return embedding model from Google Generative AI.
        """
        try:
            model_name = self.config["embedding_model"]["model_name"]
            log.info("Loading embedding model | model=%s", model_name)
            return GoogleGenerativeAIEmbeddings(
                model=model_name, google_api_key=self.api_keys.get("GOOGLE_API_KEY")
            )
        except Exception as e:
            log.error("Error loading embedding model | error=%s", str(e))
            raise ArxivAssistantException("Failed to load embedding model", e) from e

    def load_llm(self, role: str):
        """
        Load and return the configured LLM model.
        Args:
            role: One of "notes", "qa", "rephrase" or "examples"

        Returns:
            Configured LLM instance
        """
        if role not in self.config["llm"]:
            log.error("LLM role not found in config | role=%s", role)
            raise ValueError(f"LLM role '{role}' not found in config")

        llm_config = self.config["llm"][role]

        provider = llm_config["provider"]
        model = llm_config["model_name"]
        temp = llm_config.get("temperature")
        max_t = llm_config.get("max_tokens")

        log.info("Loading LLM for role=%s | model=%s", role, model)

        if provider == "google":
            return ChatGoogleGenerativeAI(
                model=model,
                google_api_key=self.api_keys.get("GOOGLE_API_KEY"),
                temperature=temp,
                max_output_tokens=max_t,
            )

        if provider == "groq":
            return ChatGroq(
                model=model,
                api_key=self.api_keys.get("GROQ_API_KEY"),
                temperature=temp,
                max_tokens=max_t,
            )

        raise ValueError(f"Unsupported provider {provider}")
