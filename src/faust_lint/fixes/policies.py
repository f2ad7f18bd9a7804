"""
Process Selection Policies.

Strategies for picking which definition a synthesized `process = name;`
binding should point at.
"""

from typing import Callable, Dict, List, Optional, Set

from faust_lint.analysis.nodes import Definition, Program
from faust_lint.enums import ProcessSelectionPolicy


def _candidates(program: Program) -> List[Definition]:
  return [d for d in program.definitions if not d.name.startswith("_")] or list(program.definitions)


def select_last_defined(program: Program) -> Optional[str]:
  """The most recently defined symbol."""
  candidates = _candidates(program)
  return candidates[-1].name if candidates else None


def select_first_defined(program: Program) -> Optional[str]:
  """The first defined symbol."""
  candidates = _candidates(program)
  return candidates[0].name if candidates else None


def select_last_unreferenced(program: Program) -> Optional[str]:
  """
  The last definition no other definition refers to.

  A definition nobody uses is the likeliest top of the signal graph. Falls back
  to the last definition when every name is referenced.
  """
  referenced: Set[str] = set()
  for definition in program.definitions:
    referenced.update(n for n in program.referenced_names(definition.span) if n != definition.name)

  for definition in reversed(_candidates(program)):
    if definition.name not in referenced:
      return definition.name
  return select_last_defined(program)


POLICIES: Dict[ProcessSelectionPolicy, Callable[[Program], Optional[str]]] = {
  ProcessSelectionPolicy.LAST_DEFINED: select_last_defined,
  ProcessSelectionPolicy.FIRST_DEFINED: select_first_defined,
  ProcessSelectionPolicy.LAST_UNREFERENCED: select_last_unreferenced,
}


def select_process_target(program: Program, policy: ProcessSelectionPolicy) -> Optional[str]:
  """
  Picks the definition to bind `process` to.

  Args:
      program (Program): The structural model.
      policy (ProcessSelectionPolicy): Selection strategy.

  Returns:
      Optional[str]: Definition name, or None if the program defines nothing.
  """
  return POLICIES[ProcessSelectionPolicy(policy)](program)
