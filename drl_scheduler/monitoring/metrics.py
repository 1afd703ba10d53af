from prometheus_client import Counter, Gauge, Histogram


# --- Prometheus Metrics ---
# Defined globally and exposed by the extender's /metrics endpoint.

# DQN Training Metrics
DQN_TRAINING_LOSS_GAUGE = Gauge('drl_scheduler_training_loss', 'Loss of the last DQN learning step')
DQN_EPSILON_GAUGE = Gauge('drl_scheduler_epsilon_value', 'Current exploration epsilon value')
DQN_BUFFER_SIZE_GAUGE = Gauge('drl_scheduler_replay_memory_size', 'Current replay memory size')
DQN_TRAINING_STEPS_COUNTER = Counter('drl_scheduler_training_steps', 'Learning steps completed')
DQN_TARGET_SYNC_COUNTER = Counter('drl_scheduler_target_syncs', 'Online to target network weight copies')
DQN_EXPERIENCES_COUNTER = Counter('drl_scheduler_transitions_added', 'Transitions added to replay memory')

# Decision Metrics
DQN_DECISIONS_COUNTER = Counter('drl_scheduler_decisions', 'Placement decisions scored by the agent')
DQN_EXPLORATION_COUNTER = Counter('drl_scheduler_exploration_actions', 'Decisions overridden by exploration')
DQN_EXPLOITATION_COUNTER = Counter('drl_scheduler_exploitation_actions', 'Decisions following the value ranking')
DQN_DEGRADED_COUNTER = Counter('drl_scheduler_degraded_cycles', 'Cycles scored without a usable prediction')
DQN_REWARD_GAUGE = Gauge('drl_scheduler_last_reward', 'Reward of the most recent decision')

# Phase Metrics
PHASE_ERRORS_COUNTER = Counter('drl_scheduler_phase_errors', 'Failed scheduling phases', ['phase', 'error'])
PHASE_DURATION_HISTOGRAM = Histogram('drl_scheduler_phase_duration_seconds', 'Scheduling phase latency', ['phase'])
