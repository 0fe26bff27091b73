"""Kitchen order lifecycle: state machine, queue, ETA, assignment and stats."""
