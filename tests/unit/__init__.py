"""
SignalForge - Unit Tests
========================

Unit tests for individual components.

Test modules:
    - test_exceptions: Error hierarchy tests
    - test_config: Settings and backtest configuration tests
    - test_data_sources: Source loading and canonicalization tests
    - test_ledger: Position and ledger model tests
    - test_indicators: Generator registry and indicator pipeline tests
    - test_expression: Predicate expression tests
    - test_signals: Signal engine tests
    - test_compiler: Strategy compiler tests
    - test_executor: Backtest executor tests
    - test_optimizer: Parameter sweep tests
"""
