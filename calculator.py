"""
Calculator Engine for QuantumCalc
Turns button and key events into display text, expressions and history
"""
import functools
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import config
import keymap
from history_manager import HistoryManager
from number_format import format_number, number_to_text, round_to_precision
from snapshot import Settings, Snapshot

logger = logging.getLogger(__name__)


class CalculatorError(Exception):
    """An input that has no valid real-valued result"""
    default_message = config.ERROR_DOMAIN

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DivisionByZeroError(CalculatorError):
    default_message = config.ERROR_DIVIDE_BY_ZERO


class NegativeSqrtError(CalculatorError):
    default_message = config.ERROR_NEGATIVE_SQRT


class DomainError(CalculatorError):
    default_message = config.ERROR_DOMAIN


class OperatorKind(Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    PERCENT = "percent"
    POWER = "power"
    NEGATE = "negate"

    @property
    def symbol(self):
        return OPERATOR_SYMBOLS[self]


OPERATOR_SYMBOLS = {
    OperatorKind.ADD: "+",
    OperatorKind.SUBTRACT: "−",
    OperatorKind.MULTIPLY: "×",
    OperatorKind.DIVIDE: "÷",
    OperatorKind.PERCENT: "%",
    OperatorKind.POWER: "^",
    OperatorKind.NEGATE: "±",
}


class FunctionKind(Enum):
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    LN = "ln"
    SQRT = "sqrt"
    SQUARE = "square"

    @property
    def symbol(self):
        return FUNCTION_SYMBOLS[self]

    @property
    def is_trig(self):
        return self in (FunctionKind.SIN, FunctionKind.COS, FunctionKind.TAN)


FUNCTION_SYMBOLS = {
    FunctionKind.SIN: "sin",
    FunctionKind.COS: "cos",
    FunctionKind.TAN: "tan",
    FunctionKind.LN: "ln",
    FunctionKind.SQRT: "√",
    FunctionKind.SQUARE: "²",
}

FUNCTIONS = {
    FunctionKind.SIN: math.sin,
    FunctionKind.COS: math.cos,
    FunctionKind.TAN: math.tan,
    FunctionKind.LN: math.log,
    FunctionKind.SQRT: math.sqrt,
    FunctionKind.SQUARE: lambda x: x * x,
}

# name -> (value, symbol shown in the expression)
CONSTANTS = {
    "pi": (math.pi, "π"),
    "e": (math.e, "e"),
}


class MemoryOp(Enum):
    CLEAR = "mc"
    RECALL = "mr"
    STORE = "ms"
    ADD = "m-plus"
    SUBTRACT = "m-minus"


class Action(Enum):
    CLEAR = "clear"
    EQUALS = "equals"
    DECIMAL = "decimal"
    BACKSPACE = "backspace"


class Mode(Enum):
    ANGLE = "angle"
    SCIENTIFIC = "scientific"
    THEME = "theme"


class InputKind(Enum):
    NUMBER = "number"
    OPERATOR = "operator"
    ACTION = "action"
    FUNCTION = "function"
    MEMORY = "memory"
    MODE = "mode"


class AngleMode(Enum):
    DEG = "DEG"
    RAD = "RAD"


class Phase(Enum):
    IDLE = "idle"
    ENTERING = "entering"
    AWAITING_OPERAND = "awaiting_operand"
    SHOWING_RESULT = "showing_result"


@dataclass(frozen=True)
class Operation:
    """A binary operator together with the value it is applied with"""
    operand: float
    operator: OperatorKind


def _divide(left, right):
    if right == 0:
        raise DivisionByZeroError()
    return left / right


def _power(left, right):
    try:
        return math.pow(left, right)
    except (OverflowError, ValueError) as error:
        raise DomainError() from error


BINARY_OPERATIONS = {
    OperatorKind.ADD: lambda left, right: left + right,
    OperatorKind.SUBTRACT: lambda left, right: left - right,
    OperatorKind.MULTIPLY: lambda left, right: left * right,
    OperatorKind.DIVIDE: _divide,
    OperatorKind.PERCENT: lambda left, right: left * (right / 100),
    OperatorKind.POWER: _power,
}


def _parses(text):
    try:
        float(text)
    except ValueError:
        return False
    return True


@dataclass
class CalculatorState:
    current_input: str = "0"
    expression: str = ""
    result: str = "0"
    pending: Optional[Operation] = None
    repeat: Optional[Operation] = None
    # Expression text for a current value produced by a function or constant
    operand_label: Optional[str] = None
    phase: Phase = Phase.IDLE
    paren_count: int = 0
    memory: float = 0.0
    angle_mode: AngleMode = AngleMode.DEG
    scientific_mode: bool = False
    theme: str = config.DEFAULT_THEME

    @property
    def waiting_for_operand(self):
        return self.phase in (Phase.AWAITING_OPERAND, Phase.SHOWING_RESULT)

    @property
    def just_calculated(self):
        return self.phase is Phase.SHOWING_RESULT

    @property
    def has_decimal(self):
        return "." in self.current_input

    @property
    def value(self):
        return float(self.current_input)


def input_event(method):
    """Run one input event and report domain errors instead of raising them.

    The wrapped method must raise before it mutates any state, so a failed
    event leaves the calculator exactly as it was. Returns the display text.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self.last_error = None
        try:
            method(self, *args, **kwargs)
        except CalculatorError as error:
            self._report_error(error)
        return self.display
    return wrapper


class Calculator:
    def __init__(self, snapshot=None, on_error=None):
        if snapshot is None:
            snapshot = Snapshot()
        self.settings = snapshot.settings
        self.state = CalculatorState(
            memory=snapshot.memory,
            angle_mode=AngleMode(snapshot.angle_mode),
            scientific_mode=snapshot.scientific_mode,
            theme=snapshot.theme,
        )
        self.history = HistoryManager(self.settings.max_history_items, snapshot.history)
        self.on_error = on_error
        self.last_error = None

    # ── Read API ───────────────────────────────────────────────

    @property
    def display(self):
        return self.format_number(self.state.value)

    @property
    def expression(self):
        return self.state.expression

    @property
    def memory_active(self):
        return self.state.memory != 0

    @property
    def angle_mode(self):
        return self.state.angle_mode

    def round_to_precision(self, value):
        return round_to_precision(value, self.settings.precision)

    def format_number(self, value):
        return format_number(value, self.settings.thousands_separator)

    def view(self):
        """Everything a caller needs to render the calculator"""
        state = self.state
        return {
            'display': self.display,
            'expression': state.expression,
            'current_input': state.current_input,
            'memory': state.memory,
            'memory_active': self.memory_active,
            'angle_mode': state.angle_mode.value,
            'scientific_mode': state.scientific_mode,
            'theme': state.theme,
            'phase': state.phase.value,
            'open_parentheses': state.paren_count,
            'history': self.history.to_list(),
            'error': self.last_error,
        }

    def snapshot(self):
        """Persistable subset of the state"""
        state = self.state
        return Snapshot(
            memory=state.memory,
            angle_mode=state.angle_mode.value,
            scientific_mode=state.scientific_mode,
            theme=state.theme,
            history=self.history.get_calculation_history(self.settings.max_history_items),
            settings=self.settings,
        )

    # ── Number entry ───────────────────────────────────────────

    @input_event
    def input_digit(self, digit):
        """Add a digit to the number being typed"""
        digit = str(digit)
        if len(digit) != 1 or digit not in "0123456789":
            raise ValueError(f"Not a digit: {digit!r}")
        logger.debug("Input digit: %s", digit)

        state = self.state
        if state.waiting_for_operand or state.current_input == "0":
            self._show_value(digit)
        elif len(state.current_input) < config.MAX_INPUT_LENGTH:
            state.current_input += digit
        state.phase = Phase.ENTERING

    @input_event
    def input_decimal(self):
        """Add a decimal point unless the number already has one"""
        logger.debug("Input decimal")
        state = self.state
        if state.waiting_for_operand:
            self._show_value("0.")
        elif not state.has_decimal:
            state.current_input += "."
        state.phase = Phase.ENTERING

    @input_event
    def backspace(self):
        """Remove the last typed character, or clear a finished result"""
        state = self.state
        if state.just_calculated:
            self._reset()
            return

        text = state.current_input[:-1]
        if not _parses(text):
            text = "0"
        state.current_input = text

    @input_event
    def clear(self):
        """Reset the calculation; memory, history and modes survive"""
        logger.debug("Clear calculator")
        self._reset()

    # ── Operators ──────────────────────────────────────────────

    @input_event
    def input_operator(self, operator):
        """Choose a binary operator, evaluating a pending one first"""
        operator = OperatorKind(operator)
        logger.debug("Input operator: %s", operator.value)
        state = self.state

        if operator is OperatorKind.NEGATE:
            self._negate()
            return

        if state.pending is None:
            operand = state.value
        elif state.phase is not Phase.AWAITING_OPERAND:
            # Chained arithmetic: left to right, no precedence
            operand = self._evaluate(state.pending, state.value)
            state.current_input = number_to_text(operand)
            state.result = state.current_input
        else:
            operand = state.pending.operand

        state.pending = Operation(operand, operator)
        state.operand_label = None
        state.phase = Phase.AWAITING_OPERAND
        state.expression = self._pending_prefix()

    @input_event
    def equals(self):
        """Evaluate the pending operation, or repeat the last one"""
        logger.debug("Calculate equals")
        state = self.state

        if state.phase is Phase.SHOWING_RESULT and state.pending is None and state.repeat is not None:
            pending = Operation(state.value, state.repeat.operator)
            right = state.repeat.operand
            right_term = self.format_number(right)
        elif state.pending is not None:
            pending = state.pending
            right = state.value
            right_term = state.operand_label or self.format_number(right)
        else:
            return

        result = self._evaluate(pending, right)
        expression = f"{self.format_number(pending.operand)} {pending.operator.symbol} {right_term}"

        state.current_input = number_to_text(result)
        state.result = state.current_input
        state.expression = ""
        state.pending = None
        state.operand_label = None
        state.paren_count = 0
        state.phase = Phase.SHOWING_RESULT
        self.history.add_calculation(expression, state.result)

    # ── Functions and constants ────────────────────────────────

    @input_event
    def apply_unary(self, kind, func=None):
        """Apply a single-operand function to the current value"""
        kind = FunctionKind(kind)
        if func is None:
            func = FUNCTIONS[kind]
        logger.debug("Apply function: %s", kind.value)
        state = self.state

        value = state.value
        argument = value
        if kind.is_trig and state.angle_mode is AngleMode.DEG:
            argument = value * (math.pi / 180)

        if kind is FunctionKind.SQRT and value < 0:
            raise NegativeSqrtError()
        try:
            result = func(argument)
        except (OverflowError, ValueError) as error:
            raise DomainError() from error
        if not math.isfinite(result):
            raise DomainError()

        # sin(180°) comes out as 1.2e-16
        if kind.is_trig and abs(result) < config.ZERO_THRESHOLD:
            result = 0.0

        label = f"{kind.symbol}({self.format_number(value)})"
        self._show_value(number_to_text(self.round_to_precision(result)), label)
        state.result = state.current_input
        state.phase = Phase.SHOWING_RESULT
        self.history.add_calculation(label, state.current_input)

    def apply_function(self, name):
        """Dispatch a function button by name"""
        if name == "power":
            return self.input_operator(OperatorKind.POWER)
        if name == "parentheses":
            return self.open_parenthesis()
        if name in CONSTANTS:
            value, symbol = CONSTANTS[name]
            return self.input_constant(value, symbol)
        return self.apply_unary(FunctionKind(name))

    @input_event
    def input_constant(self, value, symbol):
        """Show a constant as a finished value; not recorded in history"""
        logger.debug("Input constant: %s", symbol)
        self._show_value(number_to_text(self.round_to_precision(value)), symbol)
        self.state.phase = Phase.SHOWING_RESULT

    @input_event
    def open_parenthesis(self):
        """Append an opening parenthesis to the expression (display only)"""
        self.state.expression += "("
        self.state.paren_count += 1

    # ── Memory ─────────────────────────────────────────────────

    @input_event
    def memory_operation(self, operation):
        """Run one of the MC, MR, MS, M+ and M- buttons"""
        operation = MemoryOp(operation)
        logger.debug("Handle memory: %s", operation.value)
        state = self.state
        current = state.value

        if operation is MemoryOp.CLEAR:
            state.memory = 0.0
        elif operation is MemoryOp.RECALL:
            self._show_value(number_to_text(state.memory))
            state.phase = Phase.SHOWING_RESULT
        elif operation is MemoryOp.STORE:
            state.memory = current
        elif operation in (MemoryOp.ADD, MemoryOp.SUBTRACT):
            total = state.memory + current if operation is MemoryOp.ADD else state.memory - current
            if not math.isfinite(total):
                raise DomainError()
            state.memory = self.round_to_precision(total)

    # ── Modes ──────────────────────────────────────────────────

    @input_event
    def toggle_angle_mode(self):
        state = self.state
        state.angle_mode = AngleMode.RAD if state.angle_mode is AngleMode.DEG else AngleMode.DEG
        logger.debug("Angle mode: %s", state.angle_mode.value)

    @input_event
    def toggle_scientific_mode(self):
        self.state.scientific_mode = not self.state.scientific_mode

    @input_event
    def toggle_theme(self):
        themes = config.THEMES
        current = themes.index(self.state.theme) if self.state.theme in themes else -1
        self.state.theme = themes[(current + 1) % len(themes)]

    def toggle_mode(self, mode):
        mode = Mode(mode)
        if mode is Mode.ANGLE:
            return self.toggle_angle_mode()
        if mode is Mode.SCIENTIFIC:
            return self.toggle_scientific_mode()
        return self.toggle_theme()

    def configure(self, precision=None, max_history_items=None, thousands_separator=None):
        """Change settings; raises ValueError and keeps the old ones if invalid"""
        settings = Settings(
            precision=self.settings.precision if precision is None else precision,
            max_history_items=self.settings.max_history_items if max_history_items is None else max_history_items,
            thousands_separator=self.settings.thousands_separator if thousands_separator is None else thousands_separator,
        )
        settings.validate()
        self.settings = settings
        self.history.set_max_items(settings.max_history_items)
        return self.settings

    # ── History ────────────────────────────────────────────────

    @input_event
    def load_from_history(self, index):
        """Bring a previous result back as the current value"""
        entry = self.history.get_entry(index)
        if entry is None:
            return
        state = self.state
        self._show_value(entry.result)
        if state.pending is None:
            state.expression = entry.expression
        state.phase = Phase.SHOWING_RESULT

    @input_event
    def clear_history(self):
        self.history.clear_calculation_history()

    # ── Event dispatch ─────────────────────────────────────────

    def dispatch(self, kind, value=None):
        """Process one input event from a button group"""
        kind = InputKind(kind)
        if kind is InputKind.NUMBER:
            return self.input_digit(value)
        if kind is InputKind.OPERATOR:
            return self.input_operator(value)
        if kind is InputKind.FUNCTION:
            return self.apply_function(value)
        if kind is InputKind.MEMORY:
            return self.memory_operation(value)
        if kind is InputKind.MODE:
            return self.toggle_mode(value)

        action = Action(value)
        if action is Action.CLEAR:
            return self.clear()
        if action is Action.EQUALS:
            return self.equals()
        if action is Action.DECIMAL:
            return self.input_decimal()
        return self.backspace()

    def handle_key(self, key, ctrl=False):
        """Process a keyboard key; unbound keys return None"""
        binding = keymap.resolve_key(key, ctrl=ctrl, scientific_mode=self.state.scientific_mode)
        if binding is None:
            return None
        return self.dispatch(*binding)

    # ── Internals ──────────────────────────────────────────────

    def _evaluate(self, pending, right):
        operation = BINARY_OPERATIONS[pending.operator]
        try:
            result = operation(pending.operand, right)
        except OverflowError as error:
            raise DomainError() from error
        if not math.isfinite(result):
            raise DomainError()

        self.state.repeat = Operation(right, pending.operator)
        return self.round_to_precision(result)

    def _negate(self):
        state = self.state
        if state.value == 0:
            return
        if state.current_input.startswith("-"):
            state.current_input = state.current_input[1:]
        else:
            state.current_input = "-" + state.current_input

    def _pending_prefix(self):
        pending = self.state.pending
        if pending is None:
            return ""
        return f"{self.format_number(pending.operand)} {pending.operator.symbol} "

    def _show_value(self, text, label=None):
        state = self.state
        if label is not None:
            state.expression = self._pending_prefix() + label
        elif state.operand_label is not None:
            state.expression = self._pending_prefix()
        state.current_input = text
        state.operand_label = label

    def _reset(self):
        state = self.state
        state.current_input = "0"
        state.expression = ""
        state.result = "0"
        state.pending = None
        state.repeat = None
        state.operand_label = None
        state.paren_count = 0
        state.phase = Phase.IDLE

    def _report_error(self, error):
        self.last_error = error.message
        logger.info("Calculation error: %s", error.message)
        if self.on_error is not None:
            self.on_error(error.message)
