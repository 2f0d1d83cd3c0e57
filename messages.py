"""User-facing texts (Traditional Chinese / Thai) and quick-reply button sets."""
from enum import Enum
from typing import Optional

from linebot.models import CameraAction, CameraRollAction, MessageAction, QuickReply, QuickReplyButton

import config


class Affordance(str, Enum):
    DEFAULT = 'default'
    AMULET = 'amulet'
    FORTUNE = 'fortune'
    NONE = 'none'


def build_quick_reply(affordance: Optional[Affordance]) -> Optional[QuickReply]:
    if affordance is None or affordance == Affordance.NONE:
        return None
    if affordance == Affordance.AMULET:
        actions = [
            CameraAction(label='📷 拍照 / ถ่ายรูป'),
            CameraRollAction(label='🖼️ 相簿 / อัลบั้ม'),
            MessageAction(label='✅ 完成生成 / เสร็จสร้าง', text='完成'),
            MessageAction(label='🗑️ 清除重來 / ล้างใหม่', text='清除'),
            MessageAction(label='❌ 取消離開 / ยกเลิก', text='取消'),
        ]
    elif affordance == Affordance.FORTUNE:
        actions = [
            CameraRollAction(label='📁 選檔案 / เลือกไฟล์'),
            MessageAction(label='❌ 取消離開 / ยกเลิก', text='取消'),
        ]
    else:
        actions = [
            CameraAction(label='📷 拍收據 / ถ่ายรูป'),
            CameraRollAction(label='🖼️ 傳照片 / รูปภาพ'),
            MessageAction(label='📿 佛牌文案 / พระ', text='佛牌'),
            MessageAction(label='🎙️ 語音 / เสียง', text='語音'),
            MessageAction(label='🔮 語音翻譯 / แปล', text='語音翻譯'),
            MessageAction(label='📊 額度 / โควต้า', text='額度'),
            MessageAction(label='❓ 說明 / คู่มือ', text='說明'),
        ]
    return QuickReply(items=[QuickReplyButton(action=a) for a in actions])


HELP_TEXT = (
    '📖 使用說明 / คู่มือ\n\n'
    '📷 拍收據：自動辨識並記帳\n'
    '✏️ 輸入文字：師傅 品項 數量 單價\n'
    '   例：阿贊南奔 金箔 10 500\n'
    '🎙️ 傳語音：說出品項與金額\n'
    '📿 佛牌：多張照片生成文案\n'
    '🔮 語音翻譯：命理語音轉成中文解說\n\n'
    '📷 ถ่ายใบเสร็จ บันทึกอัตโนมัติ\n'
    '✏️ พิมพ์: อาจารย์ ของ จำนวน ราคา\n'
    '🎙️ ส่งเสียง บอกของและราคา\n'
    '📿 พระ: ส่งรูปหลายรูป สร้างข้อความ\n'
    '🔮 แปล: แปลเสียงหมอดูเป็นภาษาจีน'
)

VOICE_GUIDE_TEXT = (
    '🎙️ 語音記帳教學 / วิธีบันทึกด้วยเสียง\n\n'
    '1. 按住麥克風說話（60 秒內）\n'
    '2. 說出：師傅、品項、數量、價格\n'
    '   例：「阿贊南奔 金箔 十個 五百」\n\n'
    '1. กดไมค์ค้างไว้แล้วพูด (ไม่เกิน 60 วิ)\n'
    '2. บอก: อาจารย์ ของ จำนวน ราคา'
)

EXAMPLE_TEXT = (
    '✏️ 範例 / ตัวอย่าง\n\n'
    '阿贊南奔 金箔 10 500\n'
    '龍波 符管 1 1000\n'
    '金箔 10 500'
)

AMULET_ENTER_TEXT = (
    f'📿 佛牌文案模式\n請傳佛牌照片（最多 {config.MAX_AMULET_IMAGES} 張）\n'
    '可另外輸入師父、佛牌名稱等資訊\n完成後按「完成」\n\n'
    f'📿 โหมดพระ\nส่งรูปพระ (ไม่เกิน {config.MAX_AMULET_IMAGES} รูป)\n'
    'พิมพ์ข้อมูลเพิ่มได้ เสร็จแล้วกด "เสร็จ"'
)

FORTUNE_ENTER_TEXT = (
    '🔮 命理語音翻譯模式\n請傳語音或影片檔\n\n'
    '🔮 โหมดแปลเสียงหมอดู\nส่งไฟล์เสียงหรือวิดีโอ'
)

CANCEL_TEXT = '✅ 已取消模式{detail}\n✅ ยกเลิกแล้ว'
NO_MODE_TEXT = 'ℹ️ 目前沒有進行中的模式\nℹ️ ไม่มีโหมดที่ใช้อยู่'

IMAGE_RECEIVED_TEXT = (
    '📷 已收到第 {count} 張圖片\n{more}\n點下方按鈕選擇下一步 👇\n\n'
    '📷 รับรูปที่ {count} แล้ว\nกดปุ่มด้านล่างเลย'
)
IMAGE_LIMIT_TEXT = (
    '⚠️ 已達 {limit} 張上限\n點下方按鈕選擇下一步\n\n'
    '⚠️ ครบ {limit} รูปแล้ว\nกดปุ่มด้านล่างเลย'
)
IMAGES_CLEARED_TEXT = '🗑️ 已清除 {count} 張圖片\n🗑️ ล้าง {count} รูปแล้ว\n請重新傳圖 / ส่งรูปใหม่ได้เลย'
DESCRIPTION_SAVED_TEXT = '📝 已收到：{text}\n\n📝 รับข้อมูลแล้ว\n可繼續傳圖或按「完成」'
NO_IMAGES_TEXT = '⚠️ 還沒有圖片！\n請先傳佛牌照片\n\n⚠️ ยังไม่มีรูป!\nส่งรูปพระก่อนนะ'
AMULET_FAILED_TEXT = '❌ 無法辨識，請確認圖片清晰\n❌ อ่านไม่ได้ รูปชัดไหม'

RECEIPT_FAILED_TEXT = (
    '❌ 完全無法辨識，請確認：\n1. 是否為收據照片\n2. 照片是否清晰\n3. 光線是否充足\n\n'
    '❌ อ่านไม่ได้ กรุณาตรวจสอบ:\n1. เป็นรูปใบเสร็จหรือไม่\n2. รูปชัดหรือไม่\n3. แสงเพียงพอหรือไม่'
)
RECEIPT_QUALITY_TEXT = '⚠️ 圖片品質問題\n{note}\n\n建議：\n📸 重新拍攝清晰照片\n✏️ 或手動輸入：師傅 品項 數量 單價'
RECEIPT_PARTIAL_TEXT = (
    '⚠️ 只辨識到部分資訊：\n店家：{payee}\n日期：{date}\n\n'
    '無法辨識商品明細，請：\n📸 重新拍攝或\n✏️ 手動輸入明細'
)
RECEIPT_RETRY_TEXT = '❌ 辨識失敗，請重拍清晰照片\n❌ อ่านไม่ได้ ถ่ายใหม่ชัดๆนะ'

TEXT_NOT_RECORD_TEXT = (
    '🤔 看不懂這筆記帳\n請用格式：師傅 品項 數量 單價\n輸入「範例」查看更多\n\n'
    '🤔 ไม่เข้าใจ\nพิมพ์: อาจารย์ ของ จำนวน ราคา'
)

AUDIO_TOO_LONG_TEXT = '⚠️ 語音太長（限 {seconds} 秒）\n請分段錄製\n\n⚠️ เสียงยาวเกินไป (ไม่เกิน {seconds} วิ)'
AUDIO_FAILED_TEXT = (
    '❌ 無法識別語音，請重新錄製\n建議：\n1. 說話清晰\n2. 環境安靜\n3. 靠近麥克風\n\n'
    '❌ ฟังไม่ชัด กรุณาอัดใหม่'
)
AUDIO_RESULT_TEXT = '🎤 語音識別結果：\n"{transcript}"\n\n{summary}'
AUDIO_NOT_RECORD_TEXT = '🎤 語音識別：\n"{transcript}"\n\n⚠️ 無法轉為記帳資料\n⚠️ แปลงเป็นบันทึกไม่ได้'
FORTUNE_FAILED_TEXT = '❌ 翻譯處理失敗，請稍後再試\n❌ แปลไม่ได้ ลองใหม่ทีหลัง'
UNSUPPORTED_FILE_TEXT = (
    '❌ 不支援此檔案格式\n請傳語音（m4a/mp3/wav）或影片（mp4/mov）\n\n'
    '❌ ไม่รองรับไฟล์นี้'
)

ERROR_TEXTS = {
    'quota': '❌ 免費額度已滿，請稍後再試\n❌ เกินโควต้าแล้ว ลองใหม่ทีหลังนะ',
    'download': '❌ 檔案下載失敗，請重傳\n❌ ดาวน์โหลดไม่ได้ ส่งใหม่นะ',
    'default': '❌ 系統錯誤，請稍後再試\n❌ ผิดพลาด ลองใหม่ภายหลัง',
}

TOO_LARGE_TEXTS = {
    'image': f'❌ 圖片檔案過大 (>{config.MAX_IMAGE_MB}MB)\n請壓縮後重新上傳\n\n❌ ไฟล์ใหญ่เกินไป กรุณาบีบอัดแล้วส่งใหม่',
    'audio': '❌ 語音檔案太大\n❌ ไฟล์เสียงใหญ่เกินไป',
    'video': '❌ 影片檔案太大\n❌ ไฟล์วิดีโอใหญ่เกินไป',
    'file': '❌ 檔案太大\n❌ ไฟล์ใหญ่เกินไป',
}
