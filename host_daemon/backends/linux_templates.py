"""daemontools run script templates."""

RUN_TEMPLATE = """#!/bin/sh
# ${TASK_NAME} daemontools run script
exec 2>&1
cd ${TASK_DIR} || exit 1
exec setuidgid ${TASK_USER} ${TASK_BIN} ${TASK_ARGS}
"""

LOG_RUN_TEMPLATE = """#!/bin/sh
# ${TASK_NAME} log supervisor
exec setuidgid ${TASK_USER} multilog t ${TASK_LOG}
"""
