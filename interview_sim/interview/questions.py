"""
Question sources for the interview loop.

A question source serves one unseen question for a (domain, level) pool, or
``None`` once every question in the pool is in ``asked_ids``. Exhaustion is a
normal return, never an exception; the controller resets the session's
asked-set and asks again.
"""
import json
import logging
import os
import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Iterable, AbstractSet

from ..config import QUESTION_TEMPERATURE, QUESTION_MAX_TOKENS, INTRODUCTION_MAX_TOKENS, HISTORY_LINES_IN_PROMPT
from ..errors import ConfigurationError, LevelError
from .models import QuestionRecord
from .prompts import PromptRegistry, INTERVIEWER_SYSTEM_PROMPT, format_history

logger = logging.getLogger("questions")

QuestionPools = Dict[str, Dict[str, List[str]]]

DEFAULT_ROLE = "Technical Interviewer"

INTERVIEWER_ROLES = {
    "JavaScript": "Senior JavaScript Developer at Google",
    "Python": "Python Tech Lead at a AI startup",
    "React": "React Core Team Member",
    "Node.js": "Backend Architect at Netflix",
    "AI/ML": "Machine Learning Research Scientist",
    "DevOps": "Site Reliability Engineer at AWS",
    "Cybersecurity": "Security Engineer on a Red Team",
}

DEFAULT_QUESTIONS: QuestionPools = {
    "JavaScript": {
        "beginner": [
            "What is the difference between let, const, and var?",
            "Explain what a closure is in JavaScript",
            "What is event bubbling and how does it work?",
        ],
        "intermediate": [
            "How does the 'this' keyword work in different contexts?",
            "Explain the concept of promises and async/await",
            "What are higher-order functions and provide an example",
        ],
        "advanced": [
            "Explain the JavaScript event loop and how it handles asynchronous operations",
            "What are JavaScript generators and how are they different from async/await?",
            "How does JavaScript's prototypal inheritance work?",
        ],
    },
    "React": {
        "beginner": [
            "What are the key differences between functional and class components?",
            "What is JSX and how is it different from HTML?",
            "Explain the purpose of state and props in React",
        ],
        "intermediate": [
            "How does React's virtual DOM improve performance?",
            "What are React hooks and why were they introduced?",
            "Explain the component lifecycle in functional components",
        ],
        "advanced": [
            "How would you optimize a React application's performance?",
            "Explain how React's reconciliation algorithm works",
            "What are React error boundaries and how do they work?",
        ],
    },
    "Python": {
        "beginner": [
            "What is the difference between a list and a tuple?",
            "How do you handle exceptions in Python?",
            "What does the 'with' statement do?",
        ],
        "intermediate": [
            "Explain how decorators work and give an example",
            "What are generators and when would you use them?",
            "How does Python's garbage collection work?",
        ],
        "advanced": [
            "Explain the Global Interpreter Lock and its impact on concurrency",
            "How do metaclasses work in Python?",
            "Compare asyncio, threading, and multiprocessing for I/O-bound work",
        ],
    },
    "Node.js": {
        "beginner": [
            "What is Node.js and why is it single-threaded?",
            "What is npm and what is package.json used for?",
            "How do you read a file in Node.js?",
        ],
        "intermediate": [
            "Explain streams in Node.js and when to use them",
            "What is middleware in Express?",
            "How does error handling work with async code in Node.js?",
        ],
        "advanced": [
            "How would you scale a Node.js service across CPU cores?",
            "Explain the phases of the Node.js event loop",
            "How do you diagnose a memory leak in a Node.js process?",
        ],
    },
    "AI/ML": {
        "beginner": [
            "What is the difference between supervised and unsupervised learning?",
            "What is overfitting and how can you prevent it?",
            "Explain what a training, validation, and test split is for",
        ],
        "intermediate": [
            "How does gradient descent work?",
            "Explain the bias-variance tradeoff",
            "What is regularization and why does it help?",
        ],
        "advanced": [
            "Explain how attention works in transformer models",
            "How would you detect and handle data drift in production?",
            "Compare batch normalization and layer normalization",
        ],
    },
    "DevOps": {
        "beginner": [
            "What is continuous integration?",
            "What is the difference between a container and a virtual machine?",
            "Why do teams use version control?",
        ],
        "intermediate": [
            "How would you design a CI/CD pipeline for a web service?",
            "Explain infrastructure as code and its benefits",
            "What is a blue-green deployment?",
        ],
        "advanced": [
            "How do you define and track SLOs for a service?",
            "How would you debug a Kubernetes pod stuck in CrashLoopBackOff?",
            "Explain strategies for zero-downtime database migrations",
        ],
    },
    "Cybersecurity": {
        "beginner": [
            "What is the CIA triad?",
            "What is the difference between symmetric and asymmetric encryption?",
            "What is phishing and how can users protect themselves?",
        ],
        "intermediate": [
            "Explain how SQL injection works and how to prevent it",
            "What is cross-site scripting and what are its types?",
            "How does TLS establish a secure connection?",
        ],
        "advanced": [
            "How would you design a threat model for a web application?",
            "Explain how a buffer overflow can lead to code execution",
            "What is lateral movement and how do you detect it?",
        ],
    },
}


def question_id(domain: str, level: str, index: int) -> str:
    return f"{domain}-{level}-{index}"


class QuestionSource(ABC):
    """Supplies non-repeating questions for a (domain, level) pool."""

    @abstractmethod
    def validate(self, domain: str, level: str) -> None:
        """Raise ConfigurationError/LevelError when the pool does not exist."""

    @abstractmethod
    def next(self,
             domain: str,
             level: str,
             asked_ids: AbstractSet[str],
             history: Optional[Sequence[str]] = None) -> Optional[QuestionRecord]:
        """Return an unseen question, or None when the pool is exhausted."""

    def introduction(self, domain: str, level: str) -> Optional[str]:
        """Greeting spoken before the opening question; None to skip it."""
        return None


class QuestionBank(QuestionSource):
    """
    In-memory question pools keyed by domain and level.

    The bank is read-only after construction; which questions a session has
    seen is tracked by the caller through ``asked_ids``.
    """

    def __init__(self,
                 pools: Optional[QuestionPools] = None,
                 roles: Optional[Dict[str, str]] = None,
                 rng: Optional[random.Random] = None):
        source = DEFAULT_QUESTIONS if pools is None else pools
        self._pools: QuestionPools = {
            domain: {level: list(questions) for level, questions in levels.items()}
            for domain, levels in source.items()
        }
        self._roles = dict(INTERVIEWER_ROLES if roles is None else roles)
        self._rng = rng or random.Random()

    @classmethod
    def from_json_files(cls, paths: Iterable[str], **kwargs) -> "QuestionBank":
        """
        Load pools from files shaped like ``{"domain": "...", "levels": {"beginner": [...]}}``.

        Args:
            paths: Question files, one domain per file

        Returns:
            QuestionBank with one pool per (domain, level)
        """
        pools: QuestionPools = {}
        for path in paths:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            domain = data.get("domain")
            levels = data.get("levels")
            if not isinstance(domain, str) or not isinstance(levels, dict):
                raise ConfigurationError(f"Question file {path} must contain 'domain' and 'levels'")
            pools.setdefault(domain, {})
            for level, questions in levels.items():
                pools[domain][level] = [str(q) for q in questions]
            logger.info(f"Loaded {sum(len(q) for q in levels.values())} questions for {domain} from {path}")
        return cls(pools, **kwargs)

    @classmethod
    def from_directory(cls, directory: str, **kwargs) -> "QuestionBank":
        """Load every ``*.json`` question file in a directory."""
        if not os.path.isdir(directory):
            raise ConfigurationError(f"Questions directory not found: {directory}")
        paths = sorted(
            os.path.join(directory, name) for name in os.listdir(directory) if name.endswith(".json")
        )
        return cls.from_json_files(paths, **kwargs)

    def domains(self) -> List[str]:
        return list(self._pools.keys())

    def levels(self, domain: str) -> List[str]:
        if domain not in self._pools:
            return []
        return list(self._pools[domain].keys())

    def role_for(self, domain: str) -> str:
        return self._roles.get(domain, DEFAULT_ROLE)

    def validate(self, domain: str, level: str) -> None:
        if domain not in self._pools:
            raise ConfigurationError(f'Domain "{domain}" not found in questions database')
        if level not in self._pools[domain]:
            raise LevelError(domain, level)

    def pool_ids(self, domain: str, level: str) -> List[str]:
        self.validate(domain, level)
        return [question_id(domain, level, i) for i in range(len(self._pools[domain][level]))]

    def next(self,
             domain: str,
             level: str,
             asked_ids: AbstractSet[str],
             history: Optional[Sequence[str]] = None) -> Optional[QuestionRecord]:
        self.validate(domain, level)
        questions = self._pools[domain][level]
        available = [
            (i, text) for i, text in enumerate(questions)
            if question_id(domain, level, i) not in asked_ids
        ]
        if not available:
            return None

        index, text = self._rng.choice(available)
        return QuestionRecord(
            id=question_id(domain, level, index),
            text=text,
            original_text=text,
            role=self.role_for(domain),
        )


class LLMQuestionSource(QuestionSource):
    """Picks questions from a bank and has the LLM phrase them in the interviewer's voice."""

    def __init__(self, bank: QuestionBank, llm_client, prompts: Optional[PromptRegistry] = None,
                 history_lines: int = HISTORY_LINES_IN_PROMPT):
        self.bank = bank
        self.llm_client = llm_client
        self.prompts = prompts or PromptRegistry()
        self.history_lines = history_lines

    def validate(self, domain: str, level: str) -> None:
        self.bank.validate(domain, level)

    def next(self,
             domain: str,
             level: str,
             asked_ids: AbstractSet[str],
             history: Optional[Sequence[str]] = None) -> Optional[QuestionRecord]:
        record = self.bank.next(domain, level, asked_ids)
        if record is None:
            return None

        prompt = self.prompts.render(
            "ask_question",
            role=record.role,
            domain=domain,
            level=level,
            question=record.text,
            history=format_history(history or [], self.history_lines),
        )
        try:
            phrased = self.llm_client.generate_content(
                prompt,
                temperature=QUESTION_TEMPERATURE,
                max_output_tokens=QUESTION_MAX_TOKENS,
                system_prompt=INTERVIEWER_SYSTEM_PROMPT,
            )
            phrased = phrased.strip().strip('"').strip()
            if not phrased:
                raise ValueError("LLM returned an empty question")
        except Exception as e:
            logger.warning(f"Failed to phrase question {record.id}: {e}, using bank text")
            return record

        logger.info(f"Phrased question {record.id}: {phrased}")
        return QuestionRecord(id=record.id, text=phrased, original_text=record.text, role=record.role)

    def introduction(self, domain: str, level: str) -> Optional[str]:
        """Welcome message in the interviewer's voice, or None if the LLM call fails."""
        prompt = self.prompts.render(
            "introduction",
            role=self.bank.role_for(domain),
            domain=domain,
            level=level,
        )
        try:
            text = self.llm_client.generate_content(
                prompt,
                temperature=QUESTION_TEMPERATURE,
                max_output_tokens=INTRODUCTION_MAX_TOKENS,
                system_prompt=INTERVIEWER_SYSTEM_PROMPT,
            )
            text = text.strip()
        except Exception as e:
            logger.warning(f"Failed to generate introduction for {domain}/{level}: {e}")
            return None
        return text or None
