from __future__ import annotations

import random


def before_scenario(context, scenario) -> None:
    """
    Behave hook executed before each scenario.

    :param context: Behave context object.
    :type context: object
    :param scenario: Behave scenario.
    :type scenario: object
    :return: None.
    :rtype: None
    """
    _ = scenario
    context.rng = random.Random(20240611)
    context.chain = None
    context.loaded_chain = None
    context.serialized_text = None
    context.run_result = None
    context.last_error = None
