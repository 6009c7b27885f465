"""Prompt templates and context formatters for extraction, summaries and answers."""

from typing import Sequence

from graphrag_core.graph.types import Chunk, Entity, Relation

ENTITY_EXTRACTION_PROMPT = """Extract all important entities and their relationships from the following text.

For each entity, provide:
- name: The entity name
- type: One of [Person, Organization, Technology, Concept, Location, Event, Document]
- description: A brief description (1-2 sentences)

For each relationship between entities, provide:
- source: Source entity name
- target: Target entity name
- relation_type: One of [USES, PROVIDES, RELATES_TO, PART_OF, CREATED_BY, CONTAINS, DEPENDS_ON]
- evidence: The sentence from the text that states the relationship
- confidence: A number between 0 and 1

TEXT:
{text}

Respond in JSON format:
{{
  "entities": [
    {{"name": "...", "type": "...", "description": "..."}}
  ],
  "relationships": [
    {{"source": "...", "target": "...", "relation_type": "...", "evidence": "...", "confidence": 0.9}}
  ]
}}

Extract the most important entities and relationships. Be thorough but focused on key concepts."""


COMMUNITY_SUMMARY_PROMPT = """Summarize the following group of related entities into a coherent community description.

Entities:
{entities}

Relationships:
{relations}

Write a summary (100-200 words) describing what this community represents and the key relationships between its members. Respond with the summary text only."""


ANSWER_PROMPT = """You are answering a question using retrieved knowledge.

{context}

QUESTION: {query}

INSTRUCTIONS:
1. Answer using ONLY the information above
2. Cite sources when making claims: [1] for passages, [E1] for entities, [R1] for relationships, [C1] for community summaries
3. If the information is insufficient, say so clearly
4. Be concise and accurate

ANSWER:"""


def format_chunks(chunks: Sequence[Chunk]) -> str:
    if not chunks:
        return "No supporting passages."
    return "\n\n".join(f"[{i + 1}] {chunk.text}" for i, chunk in enumerate(chunks))


def format_entities(entities: Sequence[Entity]) -> str:
    if not entities:
        return "No entities found."
    lines = []
    for i, entity in enumerate(entities):
        line = f"[E{i + 1}] [{entity.type or 'Unknown'}] {entity.name}"
        if entity.description:
            line += f": {entity.description}"
        lines.append(line)
    return "\n".join(lines)


def format_relations(relations: Sequence[Relation], names: dict[str, str]) -> str:
    """Format relations with endpoint names; ``names`` maps entity id -> name."""
    if not relations:
        return "No relationships found."
    lines = []
    for i, relation in enumerate(relations):
        source = names.get(relation.source_id, relation.source_id)
        target = names.get(relation.target_id, relation.target_id)
        line = f"[R{i + 1}] {source} -[{relation.relation_type}]-> {target}"
        if relation.evidence:
            line += f' (evidence: "{relation.evidence}")'
        lines.append(line)
    return "\n".join(lines)


def format_communities(summaries: Sequence[tuple[int, str]]) -> str:
    """Format (level, summary) pairs."""
    if not summaries:
        return "No community summaries available."
    return "\n\n".join(
        f"[C{i + 1}] (Level {level}) {summary}" for i, (level, summary) in enumerate(summaries)
    )


def build_answer_prompt(context: str, query: str) -> str:
    return ANSWER_PROMPT.format(context=context, query=query)
