"""
Closed vocabularies for the artifact catalog.

Values match the strings stored in the gateway collections, so a row read
back from storage parses straight into these enums.
"""

from enum import Enum


class Subject(str, Enum):
    """UK curriculum subjects an artifact can be tagged with."""

    MATHEMATICS = "Mathematics"
    ENGLISH = "English Language & Literature"
    BIOLOGY = "Biology"
    CHEMISTRY = "Chemistry"
    PHYSICS = "Physics"
    HISTORY = "History"
    GEOGRAPHY = "Geography"
    MODERN_FOREIGN_LANGUAGES = "Modern Foreign Languages"
    COMPUTER_SCIENCE = "Computer Science"
    DESIGN_TECHNOLOGY = "Design & Technology"
    ART_DESIGN = "Art & Design"
    MUSIC = "Music"
    PE = "PE"
    RELIGIOUS_STUDIES = "Religious Studies"
    BUSINESS_STUDIES = "Business Studies"
    ECONOMICS = "Economics"
    PSYCHOLOGY = "Psychology"
    SOCIOLOGY = "Sociology"


class KeyStage(str, Enum):
    """UK key stages."""

    KS2 = "KS2"
    KS3 = "KS3"
    KS4 = "KS4"
    KS5 = "KS5"


class SortBy(str, Enum):
    """Catalog sort modes."""

    NEWEST = "newest"
    MOST_VOTED = "most_voted"
    ALPHABETICAL = "alphabetical"


class Collection(str, Enum):
    """Named collections held by the persistence gateway."""

    ARTIFACTS = "artifacts"
    ARTIFACT_SUBJECTS = "artifact_subjects"
    ARTIFACT_KEY_STAGES = "artifact_key_stages"
    VOTES = "votes"
    FAVORITES = "favorites"
