"""
Shared machine definitions for diagram tests.

These fixtures provide the machines the tests render:
- A comprehensive machine using every renderable field
- The order processing machine
- A flat machine (no compound states)
- A nested machine (compound states, absolute targets)
"""

from pathlib import Path

import pytest


@pytest.fixture
def examples_dir():
    """Directory holding the example YAML machines."""
    return Path(__file__).resolve().parent.parent / 'examples' / 'machines'


@pytest.fixture
def comprehensive_machine():
    """A machine whose first state declares every optional field."""
    return {
        'id': 'comprehensive',
        'initial': 'stateA',
        'states': {
            'stateA': {
                'description': 'FIELD_DESCRIPTION_CHECK',
                'tags': ['INV:invariant_a', 'category'],
                'meta': {'customKey': 'FIELD_META_CHECK'},
                'entry': [{'type': 'onEnter'}],
                'exit': [{'type': 'onExit'}],
                'invoke': [{'src': 'someService', 'id': 'FIELD_INVOKE_CHECK'}],
                'on': {
                    'GO': {
                        'target': 'stateB',
                        'guard': {'type': 'isValid'},
                        'actions': [{'type': 'transitionAction'}],
                    },
                },
                'after': {
                    1000: {'target': 'stateB'},
                },
            },
            'stateB': {
                'tags': ['INV:invariant_b'],
                'on': {
                    'BACK': {'target': 'stateA'},
                },
            },
        },
    }


@pytest.fixture
def order_machine():
    """Order processing: idle --SUBMIT--> validating --after 5000ms--> processing."""
    return {
        'id': 'order',
        'initial': 'idle',
        'states': {
            'idle': {
                'description': 'Waiting for order submission',
                'on': {
                    'SUBMIT': {
                        'target': 'validating',
                        'guard': {'type': 'stockAvailable'},
                        'actions': [{'type': 'reserveStock'}],
                    },
                },
            },
            'validating': {
                'tags': ['loading', '🔒 stock_reserved', '🔒 payment_not_charged'],
                'entry': [{'type': 'notifyUser'}],
                'on': {
                    'CANCEL': {'target': 'cancelled', 'actions': [{'type': 'releaseStock'}]},
                },
                'after': {
                    5000: {'target': 'processing'},
                },
            },
            'processing': {
                'tags': ['loading', '🔒 stock_reserved'],
                'description': 'Processing payment',
                'invoke': [{'src': 'paymentProcessor', 'id': 'payment'}],
                'on': {
                    'PAYMENT_SUCCESS': {'target': 'completed'},
                    'PAYMENT_FAILED': {'target': 'failed'},
                },
            },
            'completed': {
                'tags': ['success', '🔒 payment_charged', '🔒 stock_shipped'],
                'description': 'Order fulfilled',
                'entry': [{'type': 'chargeCard'}],
            },
            'failed': {
                'tags': ['error', '🔒 stock_released'],
                'description': 'Payment failed. Manual retry available.',
                'entry': [{'type': 'releaseStock'}],
                'on': {
                    'RETRY': {'target': 'processing', 'guard': {'type': 'hasValidPayment'}},
                },
            },
            'cancelled': {
                'description': 'Order cancelled by user',
                'entry': [{'type': 'logCancellation'}],
                'exit': [{'type': 'cleanupResources'}],
            },
        },
    }


@pytest.fixture
def flat_machine():
    """Four sibling states, no nesting."""
    return {
        'id': 'flat',
        'initial': 'stopped',
        'states': {
            'stopped': {'on': {'START': 'running'}},
            'running': {'on': {'HEALTH_PASS': 'healthy', 'HEALTH_FAIL': 'failed'}},
            'healthy': {'on': {'HEALTH_FAIL': 'failed'}},
            'failed': {'on': {'RECOVER': 'stopped'}},
        },
    }


@pytest.fixture
def nested_machine():
    """booting is compound; starting leaves it through an absolute target."""
    return {
        'id': 'nested',
        'initial': 'booting',
        'states': {
            'booting': {
                'initial': 'mounting',
                'states': {
                    'mounting': {'on': {'MOUNT_OK': 'starting'}},
                    'starting': {'on': {'START_OK': '#nested.running'}},
                },
            },
            'running': {
                'description': 'System operational',
                'on': {'SHUTDOWN': 'off', 'REBOOT': 'booting'},
            },
            'off': {'on': {'BOOT': 'booting'}},
        },
    }
