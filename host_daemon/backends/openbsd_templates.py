"""OpenBSD rc.d script template."""

RC_SCRIPT_TEMPLATE = """#!/bin/ksh

daemon=${TASK_BIN}
daemon_flags=${TASK_ARGS}
daemon_user=${TASK_USER}
daemon_execdir=${TASK_DIR}

. /etc/rc.d/rc.subr

rc_bg=YES
rc_reload=NO

rc_cmd $1
"""
