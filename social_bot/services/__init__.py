from social_bot.services.context_store import ChatTurn, ConversationContextStore
from social_bot.services.normalizer import InboundEvent, normalize_webhook_payload, verify_subscription
from social_bot.services.pipeline import ManualSendError, ReplyPipeline, get_pipeline
from social_bot.services.reply_policy import ReplyDecision, ReplyPolicy, ReplySource
