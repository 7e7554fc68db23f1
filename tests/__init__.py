"""conceptual test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- contract/     : Behaviour every implementation of a port must share
                  (document stores, id generators), run against each backend.
- integration/  : Concepts and the bootstrap against real SQL databases.
- e2e/          : The ``conceptual`` command line, invoked through CliRunner.
- fixtures/     : Shared pytest plugins (engines, stores); no tests here.

Every test gets its directory's marker, so ``pytest -m unit`` selects the fast
suite. PostgreSQL tests are skipped when Docker is unavailable.
"""
