# Row colors of the block view, keyed by priority category
ROW_COLOR_BY_PRIORITY = {
    "slot": "purple",
    "stake": "green",
    "bundle-0": "yellow",
    "bundle-1": "orange",
    "priority-fee": "blue",
}

LABELS_TO_UI = {
    "slot": "Slot",
    "stake": "Staked",
    "fb-bundle": "Bundle",
    "priority-fee": "Priority Fee",
}

DEFAULT_MIN_SENDER_STAKE = 100  # ether
