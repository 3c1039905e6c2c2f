"""
Keyboard Bindings for QuantumCalc
Maps keyboard keys to (input kind, value) events for Calculator.dispatch
"""

KEY_BINDINGS = {
    # Operators
    '+': ('operator', 'add'),
    '-': ('operator', 'subtract'),
    '*': ('operator', 'multiply'),
    '×': ('operator', 'multiply'),
    '/': ('operator', 'divide'),
    '÷': ('operator', 'divide'),
    '%': ('operator', 'percent'),

    # Actions
    'Enter': ('action', 'equals'),
    '=': ('action', 'equals'),
    'Escape': ('action', 'clear'),
    'Delete': ('action', 'clear'),
    'Backspace': ('action', 'backspace'),
    '.': ('action', 'decimal'),
    ',': ('action', 'decimal'),

    '(': ('function', 'parentheses'),
    ')': ('function', 'parentheses'),
}

# Only active while the scientific keypad is shown
SCIENTIFIC_BINDINGS = {
    's': ('function', 'sin'),
    'c': ('function', 'cos'),
    't': ('function', 'tan'),
    'l': ('function', 'ln'),
    'p': ('function', 'pi'),
    'e': ('function', 'e'),
    'r': ('function', 'sqrt'),
    '^': ('function', 'power'),
}

# Ctrl (or Cmd) + key
MEMORY_BINDINGS = {
    'm': ('memory', 'ms'),
    'r': ('memory', 'mr'),
    '+': ('memory', 'm-plus'),
    '-': ('memory', 'm-minus'),
}


def resolve_key(key, ctrl=False, scientific_mode=False):
    """Return the (kind, value) event bound to a key, or None"""
    if ctrl:
        return MEMORY_BINDINGS.get(key)

    if len(key) == 1 and key in "0123456789":
        return ('number', key)

    binding = KEY_BINDINGS.get(key)
    if binding is None and scientific_mode:
        binding = SCIENTIFIC_BINDINGS.get(key)
    return binding
