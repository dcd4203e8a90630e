from spotswap._controller._calls import calling  # noqa: F401
from spotswap._controller._fleets import get_eligible_pool_minimums  # noqa: F401
from spotswap._controller._fleets import get_fleet_activity_status  # noqa: F401
from spotswap._controller._functions import get_function_region  # noqa: F401
from spotswap._controller._functions import invoke_function  # noqa: F401
from spotswap._controller._groups import describe_group  # noqa: F401
from spotswap._controller._groups import execute_policy  # noqa: F401
from spotswap._controller._groups import set_desired_capacity  # noqa: F401
from spotswap._controller._instances import create_termination_tag  # noqa: F401
from spotswap._controller._instances import delete_termination_tags  # noqa: F401
from spotswap._controller._instances import find_tagged_instances  # noqa: F401
from spotswap._controller._instances import get_fleet_instance_ids  # noqa: F401
from spotswap._controller._instances import terminate_group_instance  # noqa: F401
from spotswap._controller._instances import terminate_instance  # noqa: F401
from spotswap._controller._metadata import get_instance_id  # noqa: F401
from spotswap._controller._metadata import get_instance_metadata  # noqa: F401
from spotswap._controller._metadata import get_termination_notice  # noqa: F401
from spotswap._controller._metadata import get_token  # noqa: F401
from spotswap._controller._stacks import get_stack_status  # noqa: F401
