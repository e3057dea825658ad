"""Detection rules for span matching, one category per kind of mental-state content.

Built once at import; the registry indexes this table. Keyword rules may list
literal alternatives separated by "|" (each alternative is scanned literally).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple, Union

PatternKind = Literal["keyword", "regex", "semantic", "compound"]


@dataclass(frozen=True)
class PatternDef:
    id: str
    kind: PatternKind
    pattern: Optional[Union[str, re.Pattern]] = None  # None for semantic/compound
    weight: float = 1.0
    case_sensitive: bool = False


@dataclass(frozen=True)
class CategoryConfig:
    """A named bundle of rules. always_run categories skip matching, relevance 1.0."""

    id: str
    name: str
    description: str
    patterns: Tuple[PatternDef, ...]
    claim_types: Tuple[str, ...] = ()
    priority: int = 50
    min_confidence: float = 0.5  # minimum summed relevance, not a probability
    always_run: bool = False


def _kw(id: str, pattern: str, weight: float = 1.0) -> PatternDef:
    return PatternDef(id, "keyword", pattern, weight)


def _rx(id: str, pattern: str, weight: float = 1.0) -> PatternDef:
    return PatternDef(id, "regex", pattern, weight)


BELIEF = CategoryConfig(
    id="belief_extractor",
    name="Belief",
    description="Beliefs, opinions, and worldview statements",
    claim_types=("belief", "value", "assessment"),
    min_confidence=0.6,
    priority=80,
    patterns=(
        # opinion
        _kw("think", "think", 0.8),
        _kw("believe", "believe", 1.0),
        _rx("feel_that", r"feel(?:s)?\s+(?:like|that)", 0.9),
        _kw("opinion", "opinion", 1.0),
        _rx("seem", r"(?:it\s+)?seems?\s+(?:like|to)", 0.6),
        # value statements
        _kw("important", "important", 0.7),
        _kw("should", "should", 0.6),
        _kw("ought", "ought", 0.7),
        _rx("right_wrong", r"(?:is|are)\s+(?:right|wrong)", 0.8),
        # certainty
        _kw("definitely", "definitely", 0.5),
        _kw("probably", "probably", 0.5),
        _kw("maybe", "maybe", 0.4),
        # worldview
        _rx("always", r"(?:people|things|it)\s+always", 0.7),
        _rx("never", r"(?:people|things|it)\s+never", 0.7),
    ),
)

EMOTION = CategoryConfig(
    id="emotion_extractor",
    name="Emotion",
    description="Emotional states and feelings",
    claim_types=("emotion",),
    min_confidence=0.5,
    priority=75,
    always_run=True,
    patterns=(
        _kw("happy", "happy"),
        _kw("sad", "sad"),
        _kw("angry", "angry"),
        _kw("anxious", "anxious"),
        _kw("excited", "excited"),
        _kw("frustrated", "frustrated"),
        _kw("worried", "worried"),
        _kw("stressed", "stressed"),
        _kw("overwhelmed", "overwhelmed"),
        _kw("grateful", "grateful"),
        _kw("hopeful", "hopeful"),
        _kw("disappointed", "disappointed"),
        _rx("feel", r"(?:I|we)\s+feel\s+(?!like|that)", 1.0),
        _rx("feeling", r"(?:I'm|I am)\s+feeling", 1.0),
        _rx("makes_me_feel", r"makes?\s+me\s+feel", 0.9),
        _rx("so", r"(?:so|really|very)\s+(?:happy|sad|angry|anxious)", 1.2),
        _rx("little", r"(?:a\s+little|slightly|somewhat)\s+(?:happy|sad|angry)", 0.7),
        _rx("mixed", r"mixed\s+(?:feelings|emotions)", 0.8),
        _kw("conflicted", "conflicted", 0.8),
        _kw("torn", "torn", 0.7),
    ),
)

GOAL = CategoryConfig(
    id="goal_extractor",
    name="Goal",
    description="Goals, objectives, and aspirations",
    claim_types=("goal",),
    min_confidence=0.6,
    priority=90,
    patterns=(
        _kw("goal", "goal", 1.0),
        _kw("objective", "objective", 1.0),
        _kw("target", "target", 0.8),
        _kw("aim", "aim", 0.8),
        _rx("want_to_be", r"want\s+to\s+(?:be|become)", 1.0),
        _rx("dream_of", r"dream\s+of", 0.9),
        _kw("aspire", "aspire", 1.0),
        _rx("hope_to", r"hope\s+to", 0.8),
        _rx("wish", r"(?:I|we)\s+wish", 0.7),
        _kw("achieve", "achieve", 1.0),
        _kw("accomplish", "accomplish", 1.0),
        _rx("reach", r"reach\s+(?:my|our|the)", 0.7),
        _rx("hit", r"hit\s+(?:my|our|the)", 0.6),
        _kw("succeed", "succeed", 0.8),
        _kw("success", "success", 0.7),
        _rx("make_it", r"make\s+it\s+(?:to|in)", 0.6),
        _kw("improve", "improve", 0.7),
        _rx("get_better", r"get\s+better\s+at", 0.7),
        _rx("learn_to", r"learn\s+(?:to|how\s+to)", 0.6),
        _rx("by_end", r"by\s+(?:the\s+)?end\s+of", 0.5),
        _rx("within", r"within\s+(?:\d+|a|the\s+next)", 0.5),
        _kw("someday", "someday", 0.4),
        _kw("eventually", "eventually", 0.4),
    ),
)

INTENTION = CategoryConfig(
    id="intention_extractor",
    name="Intention",
    description="Intentions, plans, and commitments",
    claim_types=("intention", "commitment", "decision"),
    min_confidence=0.6,
    priority=85,
    patterns=(
        _rx("going_to", r"(?:I'm|I am|we're|we are)\s+going\s+to", 1.0),
        _rx("want_to", r"(?:I|we)\s+want\s+to", 0.9),
        _rx("plan_to", r"(?:I|we)\s+plan\s+to", 1.0),
        _rx("will", r"(?:I|we)(?:'ll|\s+will)\s+", 0.7),
        _kw("promise", "promise", 1.0),
        _kw("commit", "commit", 1.0),
        _kw("swear", "swear", 0.9),
        _rx("decided", r"(?:I've|I have|we've|we have)\s+decided", 1.0),
        _rx("going_to_start", r"going\s+to\s+start", 0.8),
        _rx("going_to_stop", r"going\s+to\s+stop", 0.8),
        _kw("tomorrow", "tomorrow", 0.4),
        _rx("next_week", r"next\s+(?:week|month|year)", 0.5),
        _kw("soon", "soon", 0.3),
        _rx("might", r"(?:I|we)\s+might", 0.5),
        _rx("thinking_about", r"thinking\s+(?:about|of)", 0.6),
        _kw("considering", "considering", 0.6),
    ),
)

COMMITMENT = CategoryConfig(
    id="core_commitment",
    name="Commitment",
    description="Commitments, promises, and obligations",
    claim_types=("commitment",),
    min_confidence=0.6,
    priority=75,
    patterns=(
        _kw("promise", "I promise|I commit|I pledge|I vow", 0.95),
        _kw("will", "I will|I'm going to|I'll definitely|I shall", 0.85),
        _kw("obligation", "I have to|I must|I need to|obligated to", 0.8),
        _kw("agree", "I agreed|I said I would|I told them|I assured", 0.85),
        _kw("deadline", "by tomorrow|by next|deadline|due date", 0.7),
        _kw("accountability", "I'm responsible|counting on me|depending on me|my word", 0.8),
    ),
)

CONCERN = CategoryConfig(
    id="concern_extractor",
    name="Concern",
    description="Worries, fears, and concerns",
    claim_types=("concern",),
    min_confidence=0.5,
    priority=85,
    patterns=(
        _kw("worried", "worried", 1.0),
        _kw("concerned", "concerned", 1.0),
        _kw("afraid", "afraid", 1.0),
        _kw("scared", "scared", 1.0),
        _kw("nervous", "nervous", 0.8),
        _kw("anxious_concern", "anxious", 0.9),
        _rx("fear_that", r"fear\s+(?:that|of)", 1.0),
        _rx("what_if", r"what\s+if", 0.8),
        _rx("might_not", r"might\s+not", 0.5),
        _kw("problem", "problem", 0.7),
        _kw("issue", "issue", 0.6),
        _kw("trouble", "trouble", 0.7),
        _kw("struggling", "struggling", 0.8),
        _rx("not_sure", r"(?:not|n't)\s+sure\s+(?:if|about|whether)", 0.6),
        _rx("dont_know", r"(?:don't|do not)\s+know\s+(?:if|how|whether)", 0.5),
        _kw("risk", "risk", 0.8),
        _kw("danger", "danger", 0.9),
        _kw("threat", "threat", 0.8),
        _rx("fail", r"(?:might|could|will)\s+fail", 0.8),
        _rx("lose", r"(?:might|could|will)\s+lose", 0.8),
        _rx("miss", r"(?:might|could|will)\s+miss", 0.7),
    ),
)

DECISION = CategoryConfig(
    id="core_decision",
    name="Decision",
    description="Decisions and choices made",
    claim_types=("decision",),
    min_confidence=0.6,
    priority=68,
    patterns=(
        _kw("decided", "I decided|I've decided|decision is|my decision", 0.95),
        _kw("chose", "chose|picked|selected|went with|opted for", 0.85),
        _kw("final", "that's final|made up my mind|settled on|going with", 0.9),
        _kw("comparative", "instead of|rather than|over|versus", 0.7),
        _kw("resolved", "figured out|resolved|concluded|determined", 0.7),
        _kw("rejection", "not going to|won't|rejected|ruled out|dismissed", 0.7),
    ),
)

_KIN = r"(?:wife|husband|partner|mom|dad|mother|father|brother|sister|son|daughter|child|children|parents?|family)"

RELATIONSHIP = CategoryConfig(
    id="relationship_extractor",
    name="Relationship",
    description="Relationships between people",
    claim_types=("relationship",),
    min_confidence=0.6,
    priority=75,
    patterns=(
        _rx("my_family", r"my\s+" + _KIN, 1.0),
        _rx("their_family", r"(?:his|her|their)\s+" + _KIN, 0.8),
        _rx("my_work", r"my\s+(?:boss|manager|colleague|coworker|team|employee|client|customer)", 0.9),
        _rx("work_with", r"(?:work|working)\s+with", 0.6),
        _rx("reports_to", r"(?:report|reports)\s+to", 0.8),
        _rx("my_friend", r"my\s+(?:friend|best\s+friend|buddy|mate)", 0.9),
        _rx("friends_with", r"friends\s+with", 0.8),
        _kw("dating", "dating", 0.9),
        _rx("relationship", r"(?:in\s+a\s+)?relationship\s+with", 0.9),
        _rx("married_to", r"married\s+to", 1.0),
        _kw("engaged", "engaged", 0.9),
        _rx("get_along", r"(?:get|getting)\s+along\s+(?:with|well)", 0.7),
        _rx("fight_with", r"(?:fight|fighting|argue|arguing)\s+with", 0.8),
        _rx("close_to", r"close\s+(?:to|with)", 0.7),
        _rx("trust", r"(?:trust|don't trust)", 0.8),
        _rx("broke_up", r"broke\s+up", 0.9),
        _rx("got_together", r"got\s+together", 0.8),
        _rx("met", r"(?:met|meeting)\s+(?:with)?", 0.5),
    ),
)

PREFERENCE = CategoryConfig(
    id="core_preference",
    name="Preference",
    description="Likes, dislikes, and preferences",
    claim_types=("preference",),
    min_confidence=0.5,
    priority=55,
    patterns=(
        _kw("like", "I like|I love|I enjoy|I prefer|I favor", 0.9),
        _kw("dislike", "I don't like|I hate|I dislike|I can't stand|I avoid", 0.9),
        _kw("prefer", "prefer|rather|favorite|best|worst", 0.8),
        _kw("compare", "better than|worse than|more than|less than", 0.6),
        _kw("taste", "my taste|my style|my type|my kind of", 0.7),
    ),
)

FACTUAL = CategoryConfig(
    id="factual_extractor",
    name="Factual",
    description="Factual claims and information",
    claim_types=("factual",),
    min_confidence=0.7,
    priority=70,
    always_run=True,
    patterns=(
        _rx("is_a", r"\b(?:is|are|was|were)\s+(?:a|an|the)\b", 0.4),
        _rx("has_have", r"\b(?:has|have|had)\s+(?:a|an|the|\d)", 0.4),
        _rx("numbers", r"\b\d+(?:\.\d+)?\s*(?:%|percent|dollars?|years?|months?|days?|hours?|minutes?)", 0.7),
        _rx("costs", r"\$\d+(?:,\d{3})*(?:\.\d{2})?", 0.8),
        _rx("located", r"(?:located|based|situated)\s+(?:in|at|on)", 0.7),
        _rx("happened", r"(?:happened|occurred|took\s+place)\s+(?:in|on|at)", 0.7),
        _rx("works_at", r"(?:work|works|worked)\s+(?:at|for|with)", 0.6),
        _rx("studied", r"(?:studied|graduated|majored)\s+(?:at|in|from)", 0.6),
        _rx("lives_in", r"(?:live|lives|lived)\s+(?:in|at|on)", 0.6),
        _rx("is_my", r"\bis\s+my\s+(?:wife|husband|friend|boss|colleague|brother|sister|mother|father)", 0.8),
        _rx("married", r"(?:married|engaged|dating|divorced)", 0.6),
        _rx("there_is", r"\bthere\s+(?:is|are|was|were)\b", 0.3),
    ),
)

HABIT = CategoryConfig(
    id="core_habit",
    name="Habit",
    description="Recurring behaviors and routines",
    claim_types=("habit",),
    min_confidence=0.5,
    priority=50,
    patterns=(
        _kw("always", "always|usually|typically|normally|regularly", 0.8),
        _kw("every", "every day|every week|every morning|each time", 0.9),
        _kw("routine", "routine|habit|practice|ritual|pattern", 0.9),
        _kw("tend", "I tend to|I often|I generally|I commonly", 0.7),
        _kw("scheduled", "on mondays|in the morning|after work|before bed", 0.7),
    ),
)

VALUE = CategoryConfig(
    id="core_value",
    name="Value & Principle",
    description="Core values, principles, and what matters most",
    claim_types=("value",),
    min_confidence=0.6,
    priority=85,
    patterns=(
        _kw("important", "important to me|matters to me|care about|value", 0.9),
        _kw("should_value", "should|ought to|right thing|wrong thing|must", 0.7),
        _kw("priority", "priority|comes first|above all|most of all", 0.8),
        _kw("core", "that's who I am|defines me|core to me|fundamental", 0.9),
        _kw("principle", "principle|rule|standard|code|ethic", 0.7),
        _kw("non_neg", "non-negotiable|always|never compromise", 0.85),
    ),
)

SELF_PERCEPTION = CategoryConfig(
    id="core_self_perception",
    name="Self-Perception",
    description="How the speaker sees themselves",
    claim_types=("self_perception",),
    min_confidence=0.5,
    priority=72,
    patterns=(
        _kw("i_am", "I am|I'm a|I'm the kind of|I'm someone who", 0.9),
        _kw("good_at", "good at|bad at|strength|weakness|talented|struggle with", 0.8),
        _kw("tendency", "I tend to|I usually|I always|I never", 0.7),
        _kw("describe", "describe myself|see myself|consider myself|think of myself", 0.9),
        _kw("compare_self", "better than|worse than|like most people|unlike others", 0.6),
        _kw("role", "as a|my role|my job|my responsibility", 0.6),
    ),
)

QUESTION = CategoryConfig(
    id="core_question",
    name="Question & Uncertainty",
    description="Questions, uncertainties, and knowledge gaps",
    claim_types=("question",),
    min_confidence=0.5,
    priority=70,
    patterns=(
        _rx("question_mark", r"\?$", 0.9),
        _kw("wh_words", "who|what|where|when|why|how|which", 0.5),
        _kw("dont_know_q", "I don't know|I'm not sure|uncertain|I wonder", 0.9),
        _kw("maybe_q", "maybe|perhaps|possibly|might|could be", 0.6),
        _kw("should_i", "should I|what if|would it be|is it better", 0.7),
        _kw("seeking", "any ideas|any thoughts|suggestions|advice", 0.7),
        _kw("need_to_find", "need to find out|need to learn|need to figure out", 0.8),
    ),
)

LEARNING = CategoryConfig(
    id="core_learning",
    name="Learning",
    description="Lessons learned and insights gained",
    claim_types=("learning",),
    min_confidence=0.5,
    priority=65,
    patterns=(
        _kw("learned", "I learned|I realized|I discovered|I found out", 0.95),
        _kw("insight", "insight|revelation|epiphany|understanding", 0.85),
        _kw("realize", "now I know|now I understand|it dawned on me|it hit me", 0.9),
        _kw("change_understanding", "didn't know|thought that|turns out|actually", 0.7),
        _kw("teaching", "taught me|showed me|made me realize|helped me see", 0.8),
        _kw("growth", "grew|developed|improved|got better at", 0.6),
    ),
)

CAUSAL = CategoryConfig(
    id="core_causal",
    name="Causal Belief",
    description="Beliefs about cause and effect",
    claim_types=("causal",),
    min_confidence=0.5,
    priority=75,
    patterns=(
        _kw("because", "because|since|therefore|thus|hence", 0.9),
        _kw("caused", "caused|causes|led to|leads to|resulted in|results in", 0.9),
        _kw("due_to", "due to|owing to|thanks to|on account of", 0.8),
        _rx("conditional", r"\bif\b.*?\bthen\b|whenever|every time", 0.8),
        _kw("mechanism", "in order to|so that|to achieve", 0.6),
        _kw("prevent", "prevents|stops|blocks|avoids|protects", 0.7),
        _kw("enable", "enables|allows|makes possible|helps", 0.6),
        _kw("reason", "the reason|the cause|what makes|what causes", 0.8),
    ),
)

ENTITY = CategoryConfig(
    id="core_entity",
    name="Entity",
    description="Named entities in conversation",
    claim_types=(),
    min_confidence=0.5,
    priority=100,
    always_run=True,
    patterns=(
        PatternDef("proper_noun", "regex", r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+\b", 0.8, case_sensitive=True),
        PatternDef("title", "regex", r"\b(?:Mr|Mrs|Ms|Dr|Prof)\.?\s+[A-Z][a-z]+", 0.9, case_sensitive=True),
        _kw("org", "Inc|Corp|LLC|Ltd|Company|Team|Group", 0.8),
        _kw("role_entity", "CEO|CTO|manager|director|lead|founder|boss|colleague", 0.6),
        _kw("named", "called|named|known as", 0.9),
    ),
)

HYPOTHETICAL = CategoryConfig(
    id="core_hypothetical",
    name="Hypothetical",
    description="Hypothetical scenarios and counterfactuals",
    claim_types=("hypothetical",),
    min_confidence=0.5,
    priority=45,
    patterns=(
        _kw("if_then", "if I|if we|if they|what if|suppose", 0.9),
        _kw("counterfactual", "if I had|if only|wish I had|should have", 0.85),
        _kw("hypothetical", "imagine|hypothetically|theoretically|in theory", 0.8),
        _kw("modal", "could be|would be|might be|could have", 0.7),
        _kw("scenario", "scenario|possibility|alternative|option", 0.6),
        _kw("future_if", "if this happens|when this happens|in case", 0.7),
    ),
)

MEMORY_REFERENCE = CategoryConfig(
    id="core_memory_reference",
    name="Memory Reference",
    description="References to past events and experiences",
    claim_types=("memory_reference",),
    min_confidence=0.5,
    priority=60,
    patterns=(
        _kw("remember", "I remember|I recall|I think back|reminds me of", 0.95),
        _kw("past_time", "back when|years ago|when I was|used to", 0.85),
        _rx("specific_time", r"last year|last month|in 2\d{3}|that time when", 0.8),
        _kw("experience", "experienced|went through|happened to me|I had", 0.7),
        _kw("comparison_past", "like before|same as when|different from when|unlike last time", 0.7),
        _kw("nostalgia", "miss|wish I could|those days|back then", 0.6),
    ),
)

CHANGE_MARKER = CategoryConfig(
    id="core_change_marker",
    name="Change Marker",
    description="Statements about change and transitions",
    claim_types=("change_marker",),
    min_confidence=0.5,
    priority=58,
    patterns=(
        _kw("changed", "changed|different now|not the same|transformed", 0.9),
        _kw("used_to", "used to|before I|in the past I|no longer", 0.85),
        _kw("transition", "becoming|turning into|starting to|beginning to", 0.8),
        _kw("evolution", "evolved|grown|developed|progressed|shifted", 0.75),
        _kw("contrast", "whereas before|unlike before|compared to before|now instead", 0.8),
        _kw("new_old", "new|old|previous|former|current|now", 0.5),
    ),
)


ALL_CATEGORIES: Tuple[CategoryConfig, ...] = (
    BELIEF,
    EMOTION,
    GOAL,
    INTENTION,
    COMMITMENT,
    CONCERN,
    DECISION,
    RELATIONSHIP,
    PREFERENCE,
    FACTUAL,
    HABIT,
    VALUE,
    SELF_PERCEPTION,
    QUESTION,
    LEARNING,
    CAUSAL,
    ENTITY,
    HYPOTHETICAL,
    MEMORY_REFERENCE,
    CHANGE_MARKER,
)
