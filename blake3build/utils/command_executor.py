import subprocess
from ..cli_logger import logger

def run_shell_command(command, env=None, input_data=None, cwd=None):
    """
    Executes a command and captures its output.

    Args:
        command (list): The command to execute as a list of strings.
        env (dict, optional): A dictionary of environment variables.
        input_data (str, optional): Data to be passed to the command's stdin.
        cwd (str, optional): The working directory for the command.

    Returns:
        tuple: (stdout, stderr, return_code). A missing executable yields return code -1.
    """
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            env=env,
            input=input_data,
            check=False,
            cwd=cwd
        )
        return result.stdout, result.stderr, result.returncode

    except FileNotFoundError as e:
        logger.debug(f"Command not found: {e.filename}")
        return "", str(e), -1
    except OSError as e:
        logger.error(f"An unexpected error occurred while running {command[0]}: {e}")
        return "", str(e), -1
